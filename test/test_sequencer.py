import random
import threading
import unittest

from fakes import FakeRuntime, RecordingDispatcher, make_waypoints

from waypoint_manager.core.sequencer import InFlightStatus, WaypointSequencer
from waypoint_manager.core.waypoints import ConfigurationError


class ExplodingDispatcher:
    def dispatch(self, waypoint, listener):
        raise RuntimeError("boom")


class TestWaypointSequencer(unittest.TestCase):

    def _sequencer(self, count=12, start=0, dispatcher=None):
        self.runtime = FakeRuntime()
        self.dispatcher = dispatcher or RecordingDispatcher()
        return WaypointSequencer(self.runtime, make_waypoints(count), self.dispatcher, start_index=start)

    def test_rejects_out_of_range_start_index(self):
        for start in (-1, 3, 99):
            with self.subTest(start=start):
                with self.assertRaises(ConfigurationError):
                    self._sequencer(count=3, start=start)

    def test_tick_before_arm_never_dispatches(self):
        seq = self._sequencer()
        for _ in range(1000):
            seq.tick()
        self.assertEqual(self.dispatcher.calls, [])
        self.assertIsNone(seq.in_flight)
        self.assertEqual(seq.stats().dispatched, 0)

    def test_arm_is_idempotent(self):
        seq = self._sequencer()
        seq.arm()
        seq.arm()
        self.assertTrue(seq.armed)
        self.assertEqual(self.runtime.states.count("ARMED"), 1)

    def test_tick_dispatches_current_waypoint_once(self):
        seq = self._sequencer(start=4)
        seq.arm()
        seq.tick()
        seq.tick()
        seq.tick()
        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(self.dispatcher.calls[0], seq.waypoints[4])
        goal = seq.in_flight
        self.assertEqual(goal.index, 4)
        self.assertEqual(goal.status, InFlightStatus.PENDING)

    def test_mark_accepted_updates_in_flight_status(self):
        seq = self._sequencer()
        seq.arm()
        seq.tick()
        seq.mark_accepted()
        self.assertEqual(seq.in_flight.status, InFlightStatus.ACCEPTED)
        self.assertEqual(seq.cursor, 0)

    def test_in_flight_snapshot_is_a_copy(self):
        seq = self._sequencer()
        seq.arm()
        seq.tick()
        snapshot = seq.in_flight
        snapshot.status = InFlightStatus.COMPLETED
        self.assertEqual(seq.in_flight.status, InFlightStatus.PENDING)

    def test_success_advances_cursor_with_wraparound(self):
        for count in (1, 2, 5, 12):
            for start in range(count):
                with self.subTest(count=count, start=start):
                    seq = self._sequencer(count=count, start=start)
                    for k in range(1, 2 * count + 3):
                        seq.on_goal_succeeded()
                        self.assertEqual(seq.cursor, (start + k) % count)

    def test_failure_never_moves_cursor(self):
        seq = self._sequencer(start=7)
        seq.arm()
        for _ in range(25):
            seq.tick()
            seq.on_goal_failed("rejected")
            self.assertEqual(seq.cursor, 7)
            self.assertIsNone(seq.in_flight)
        self.assertEqual(len(self.dispatcher.calls), 25)
        self.assertTrue(all(wp == seq.waypoints[7] for wp in self.dispatcher.calls))
        self.assertEqual(seq.stats().failed, 25)

    def test_single_waypoint_is_sent_forever(self):
        seq = self._sequencer(count=1)
        seq.arm()
        for _ in range(5):
            seq.tick()
            seq.on_goal_succeeded()
        self.assertEqual(len(self.dispatcher.calls), 5)
        self.assertEqual(seq.cursor, 0)
        self.assertEqual(seq.stats().laps, 5)

    def test_twelve_waypoint_scenario_with_rejections(self):
        seq = self._sequencer(count=12, start=0)
        seq.arm()
        observed = []

        seq.tick()
        seq.on_goal_succeeded()
        observed.append(seq.cursor)

        for _ in range(2):
            seq.tick()
            seq.on_goal_failed("rejected")
            observed.append(seq.cursor)

        seq.tick()
        seq.on_goal_succeeded()
        observed.append(seq.cursor)

        self.assertEqual(observed, [1, 1, 1, 2])
        self.assertEqual(
            [wp.name for wp in self.dispatcher.calls],
            ["wp_0", "wp_1", "wp_1", "wp_1"],
        )
        stats = seq.stats()
        self.assertEqual((stats.dispatched, stats.succeeded, stats.failed), (4, 2, 2))
        self.assertAlmostEqual(stats.success_rate, 0.5)

    def test_lap_is_counted_on_wrap(self):
        seq = self._sequencer(count=3, start=1)
        seq.on_goal_succeeded()
        self.assertEqual(seq.stats().laps, 0)
        seq.on_goal_succeeded()
        self.assertEqual(seq.stats().laps, 1)
        self.assertIn("LAP_COMPLETE", self.runtime.states)

    def test_dispatch_exception_releases_slot(self):
        seq = self._sequencer(dispatcher=ExplodingDispatcher())
        seq.arm()
        seq.tick()
        self.assertIsNone(seq.in_flight)
        self.assertEqual(seq.cursor, 0)
        self.assertEqual(seq.stats().failed, 1)
        self.assertTrue(any("boom" in m for m in self.runtime.logger.messages("error")))

    def test_single_in_flight_under_concurrent_ticks_and_callbacks(self):
        count = 5
        seq = self._sequencer(count=count)
        seq.arm()
        lock = threading.Lock()
        outstanding = []
        violations = []

        class CountingDispatcher:
            def dispatch(self, waypoint, listener):
                with lock:
                    outstanding.append(waypoint)
                    if len(outstanding) > 1:
                        violations.append(len(outstanding))

        seq._dispatcher = CountingDispatcher()

        def ticker():
            for _ in range(2000):
                seq.tick()

        def completer(seed):
            rng = random.Random(seed)
            for _ in range(2000):
                with lock:
                    if not outstanding:
                        continue
                    outstanding.pop()
                    # Report while holding the lock so a new dispatch cannot race the bookkeeping.
                    if rng.random() < 0.7:
                        seq.on_goal_succeeded()
                    else:
                        seq.on_goal_failed("rejected")

        threads = [threading.Thread(target=ticker) for _ in range(4)]
        threads.append(threading.Thread(target=completer, args=(1,)))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(violations, [])
        stats = seq.stats()
        self.assertEqual(seq.cursor, stats.succeeded % count)
        self.assertEqual(stats.dispatched, stats.succeeded + stats.failed + len(outstanding))


if __name__ == '__main__':
    unittest.main()
