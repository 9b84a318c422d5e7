"""Tracks the robot's latest localized pose for distance-to-goal reporting."""

from __future__ import annotations

import threading
from typing import Optional

from geometry_msgs.msg import PoseWithCovarianceStamped
from rclpy.callback_groups import CallbackGroup

from ..core.waypoints import Point2D
from .qos import POSE_QOS


class PoseTracker:
    """Subscribes to the localization pose; used for telemetry only."""

    def __init__(self, node, topic: str, *, callback_group: Optional[CallbackGroup] = None) -> None:
        self._node = node
        self._lock = threading.Lock()
        self._position: Optional[Point2D] = None
        self._first_pose_logged = False
        node.create_subscription(
            PoseWithCovarianceStamped,
            topic,
            self._on_pose,
            POSE_QOS,
            callback_group=callback_group,
        )

    def _on_pose(self, msg: PoseWithCovarianceStamped) -> None:
        position = msg.pose.pose.position
        with self._lock:
            self._position = (float(position.x), float(position.y))
        if not self._first_pose_logged:
            self._first_pose_logged = True
            self._node.get_logger().info(f"Pose received: x={position.x:.2f} y={position.y:.2f}")

    def current_position(self) -> Optional[Point2D]:
        with self._lock:
            return self._position


__all__ = ["PoseTracker"]
