"""Nav2 NavigateToPose transport backed by rclpy's ActionClient."""

from __future__ import annotations

from typing import Optional

from geometry_msgs.msg import PoseStamped
from nav2_msgs.action import NavigateToPose
from rclpy.action import ActionClient
from rclpy.callback_groups import CallbackGroup
from rclpy.node import Node
from rclpy.task import Future

from ..core.dispatch import GoalRequest


def pose_stamped_from_request(node: Node, request: GoalRequest) -> PoseStamped:
    msg = PoseStamped()
    msg.header.frame_id = request.pose.frame_id
    msg.header.stamp = node.get_clock().now().to_msg()
    msg.pose.position.x = float(request.pose.x)
    msg.pose.position.y = float(request.pose.y)
    msg.pose.position.z = float(request.pose.z)
    q = request.pose.orientation
    msg.pose.orientation.x = q.x
    msg.pose.orientation.y = q.y
    msg.pose.orientation.z = q.z
    msg.pose.orientation.w = q.w
    return msg


class NavigateToPoseTransport:
    """Thin NavigationTransport over ``nav2_msgs/action/NavigateToPose``."""

    def __init__(
        self,
        node: Node,
        action_name: str,
        *,
        callback_group: Optional[CallbackGroup] = None,
    ) -> None:
        self._node = node
        self._action_name = action_name
        self._client = ActionClient(node, NavigateToPose, action_name, callback_group=callback_group)

    @property
    def action_name(self) -> str:
        return self._action_name

    def wait_for_server(self, timeout_s: float) -> bool:
        return self._client.wait_for_server(timeout_sec=timeout_s)

    def send_goal(self, request: GoalRequest) -> Future:
        goal = NavigateToPose.Goal()
        goal.pose = pose_stamped_from_request(self._node, request)
        return self._client.send_goal_async(goal)

    def destroy(self) -> None:
        self._client.destroy()


__all__ = ["NavigateToPoseTransport", "pose_stamped_from_request"]
