import math
import tempfile
import unittest
from pathlib import Path

from waypoint_manager.core.waypoints import (
    ConfigurationError,
    Quaternion,
    Waypoint,
    WaypointList,
    load_waypoints,
    planar_distance,
    validate_start_index,
)

PACKAGE_ROUTE = Path(__file__).resolve().parent.parent / "waypoint_manager" / "param" / "marathon_route.yaml"


class TestWaypointPose(unittest.TestCase):

    def test_quaternion_is_unit_and_planar(self):
        for yaw in (-3.1, -2.17, -0.57, 0.0, 0.25, 0.977, 1.69, 2.55, 3.14):
            with self.subTest(yaw=yaw):
                q = Waypoint(1.0, 2.0, yaw).orientation
                self.assertAlmostEqual(q.norm(), 1.0, delta=1e-6)
                self.assertEqual(q.x, 0.0)
                self.assertEqual(q.y, 0.0)

    def test_yaw_recovered_from_quaternion(self):
        for yaw in (-3.0, -1.2, 0.0, 0.5, 1.57, 2.9):
            with self.subTest(yaw=yaw):
                pose = Waypoint(0.0, 0.0, yaw).to_pose()
                self.assertAlmostEqual(pose.orientation.yaw(), yaw, places=9)

    def test_pose_construction_is_idempotent(self):
        wp = Waypoint(20.5, 47.12, 0.977)
        self.assertEqual(wp.to_pose(), wp.to_pose())
        self.assertEqual(wp.to_pose().frame_id, "map")
        self.assertEqual((wp.to_pose().x, wp.to_pose().y), (20.5, 47.12))

    def test_normalized_handles_zero_quaternion(self):
        q = Quaternion(0.0, 0.0, 0.0, 0.0).normalized()
        self.assertEqual(q, Quaternion())

    def test_planar_distance(self):
        self.assertAlmostEqual(planar_distance((0.0, 0.0), (3.0, 4.0)), 5.0)


class TestWaypointList(unittest.TestCase):

    def test_empty_list_rejected(self):
        with self.assertRaises(ConfigurationError):
            WaypointList([])

    def test_indexing_and_length(self):
        waypoints = WaypointList([Waypoint(0.0, 0.0), Waypoint(1.0, 1.0, 0.5)])
        self.assertEqual(len(waypoints), 2)
        self.assertEqual(waypoints[1].yaw, 0.5)
        self.assertEqual([wp.x for wp in waypoints], [0.0, 1.0])

    def test_start_index_validation(self):
        self.assertEqual(validate_start_index(0, 3), 0)
        self.assertEqual(validate_start_index(2, 3), 2)
        for bad in (-1, 3, 10, True, 1.0, "1", None):
            with self.subTest(index=bad):
                with self.assertRaises(ConfigurationError):
                    validate_start_index(bad, 3)


class TestLoadWaypoints(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)

    def _write(self, text):
        path = self.dir / "route.yaml"
        path.write_text(text)
        return path

    def test_mapping_and_sequence_entries(self):
        path = self._write(
            "api_version: 1\n"
            "waypoints:\n"
            "  - {name: gate, x: 1.5, y: -2.0, yaw: 0.3}\n"
            "  - [4, 5, -1.0]\n"
            "  - [6, 7]\n"
        )
        waypoints = load_waypoints(path)
        self.assertEqual(len(waypoints), 3)
        self.assertEqual(waypoints[0], Waypoint(1.5, -2.0, 0.3, "gate"))
        self.assertEqual(waypoints[1], Waypoint(4.0, 5.0, -1.0))
        self.assertEqual(waypoints[2].yaw, 0.0)

    def test_invalid_files(self):
        cases = {
            "missing version": "waypoints:\n  - [1, 2, 0]\n",
            "wrong version": "api_version: 2\nwaypoints:\n  - [1, 2, 0]\n",
            "empty list": "api_version: 1\nwaypoints: []\n",
            "not a list": "api_version: 1\nwaypoints: {x: 1}\n",
            "missing y": "api_version: 1\nwaypoints:\n  - {x: 1}\n",
            "non numeric": "api_version: 1\nwaypoints:\n  - [a, 2, 0]\n",
            "too long": "api_version: 1\nwaypoints:\n  - [1, 2, 3, 4]\n",
            "scalar entry": "api_version: 1\nwaypoints:\n  - 5\n",
            "top level list": "- [1, 2, 0]\n",
            "bad yaml": "api_version: [1\n",
        }
        for label, text in cases.items():
            with self.subTest(case=label):
                with self.assertRaises(ConfigurationError):
                    load_waypoints(self._write(text))

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_waypoints(self.dir / "absent.yaml")

    def test_packaged_marathon_route(self):
        waypoints = load_waypoints(PACKAGE_ROUTE)
        self.assertEqual(len(waypoints), 12)
        self.assertEqual(waypoints[0].position, (20.5, 47.12))
        self.assertAlmostEqual(waypoints[11].yaw, 2.47)
        self.assertTrue(all(math.isclose(wp.orientation.norm(), 1.0) for wp in waypoints))


if __name__ == '__main__':
    unittest.main()
