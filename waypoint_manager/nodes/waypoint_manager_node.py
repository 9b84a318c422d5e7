#!/usr/bin/env python3
"""Waypoint manager node that cycles Nav2 goals through the core sequencer."""

from __future__ import annotations

import pathlib
from typing import Optional, Sequence

import rclpy
from rclpy.callback_groups import MutuallyExclusiveCallbackGroup, ReentrantCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.node import Node
from std_msgs.msg import Empty, String

from ..core import ConfigurationError, WaypointController
from ..core.runtime import NavigationRuntime
from ..core.stats import format_stats
from ..core.waypoints import Point2D
from ..navio.action_client import NavigateToPoseTransport
from ..navio.localization import PoseTracker
from ..navio.qos import EVENTS_QOS, TRIGGER_QOS
from ..navio.topics import namespaced


class RosNavigationRuntime(NavigationRuntime):
    """Concrete NavigationRuntime backed by rclpy."""

    def __init__(self, node: Node, pose_tracker: PoseTracker, *, state_topic: str) -> None:
        self._node = node
        self._pose_tracker = pose_tracker
        self._state_pub = node.create_publisher(String, state_topic, EVENTS_QOS)

    @property
    def logger(self):
        return self._node.get_logger()

    def now(self) -> float:
        return self._node.get_clock().now().nanoseconds / 1e9

    def ok(self) -> bool:
        return rclpy.ok(context=self._node.context)

    def publish_state(self, name: str) -> None:
        msg = String()
        msg.data = name
        self._state_pub.publish(msg)

    def current_position(self) -> Optional[Point2D]:
        return self._pose_tracker.current_position()


class WaypointManagerNode(Node):
    """ROS2 node that loads a route file and sends its waypoints to Nav2 in a loop."""

    def __init__(self) -> None:
        super().__init__("waypoint_manager")
        waypoints_file_param = self.declare_parameter("waypoints_file", "").get_parameter_value().string_value
        waypoints_path = self._resolve_waypoints_path(waypoints_file_param)
        if waypoints_path is None:
            raise RuntimeError("Parameter 'waypoints_file' must point to a waypoint YAML file")
        self.get_logger().info(f"Loading waypoints from {waypoints_path}")

        start_index = int(self.declare_parameter("next_wp", 0).value)
        self._robot_ns = self.declare_parameter("robot_ns", "").get_parameter_value().string_value.strip()
        action_name = self._declare_name("action_name", "navigate_to_pose")
        start_topic = self._declare_name("start_topic", "start_navigate")
        pose_topic = self._declare_name("pose_topic", "amcl_pose")
        state_topic = self._declare_name("state_topic", "waypoint_manager/state")
        frame_id = self.declare_parameter("frame_id", "map").get_parameter_value().string_value or "map"
        tick_period_s = float(self.declare_parameter("tick_period_s", 1.0).value)
        server_wait_period_s = float(self.declare_parameter("server_wait_period_s", 1.0).value)
        if tick_period_s <= 0.0 or server_wait_period_s <= 0.0:
            raise RuntimeError("Parameters 'tick_period_s' and 'server_wait_period_s' must be positive")

        # The tick may block while waiting for the action server; responses use their own group.
        self._tick_group = MutuallyExclusiveCallbackGroup()
        self._io_group = ReentrantCallbackGroup()

        pose_tracker = PoseTracker(self, pose_topic, callback_group=self._io_group)
        self._transport = NavigateToPoseTransport(self, action_name, callback_group=self._io_group)
        runtime = RosNavigationRuntime(self, pose_tracker, state_topic=state_topic)

        try:
            self._controller = WaypointController(
                runtime,
                self._transport,
                waypoints_path,
                start_index=start_index,
                server_wait_period_s=server_wait_period_s,
                frame_id=frame_id,
            )
        except ConfigurationError as exc:
            raise RuntimeError(f"Failed to load waypoints: {exc}") from exc

        self.create_subscription(
            Empty,
            start_topic,
            self._on_start,
            TRIGGER_QOS,
            callback_group=self._io_group,
        )

        waypoints = self._controller.waypoints
        self.get_logger().info(
            "Waypoint manager ready: %d waypoints, starting at #%d, action %s, waiting for %s"
            % (len(waypoints), start_index, action_name, start_topic)
        )
        self._timer = self.create_timer(tick_period_s, self._on_timer, callback_group=self._tick_group)

    @property
    def controller(self) -> WaypointController:
        return self._controller

    def _declare_name(self, param: str, default: str) -> str:
        value = self.declare_parameter(param, default).get_parameter_value().string_value or default
        return namespaced(value, namespace=self._robot_ns)

    def _resolve_waypoints_path(self, value: str) -> Optional[pathlib.Path]:
        if not value:
            return None
        path = pathlib.Path(value).expanduser()
        if not path.is_absolute():
            path = (pathlib.Path.cwd() / path).resolve()
        return path if path.is_file() else None

    def _on_start(self, _msg: Empty) -> None:
        self._controller.arm()

    def _on_timer(self) -> None:
        self._controller.tick()

    def destroy_node(self) -> bool:
        self.get_logger().info(f"Waypoint manager stopping ({format_stats(self._controller.stats())})")
        self._transport.destroy()
        return super().destroy_node()


def main(args: Optional[Sequence[str]] = None) -> None:
    rclpy.init(args=args)

    manager: Optional[WaypointManagerNode] = None
    executor: Optional[MultiThreadedExecutor] = None
    try:
        manager = WaypointManagerNode()
        executor = MultiThreadedExecutor()
        executor.add_node(manager)

        executor.spin()
    except KeyboardInterrupt:
        pass
    except Exception as exc:  # noqa: BLE001
        if manager is not None:
            manager.get_logger().error(f"Waypoint manager failed: {exc}")
        else:
            print(f"Waypoint manager failed: {exc}")
        raise
    finally:
        if executor is not None:
            executor.shutdown()
        if manager is not None:
            manager.destroy_node()
        if rclpy.ok():
            rclpy.shutdown()


if __name__ == "__main__":
    main()
