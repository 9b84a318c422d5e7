"""Goal dispatch client: server wait, send, acknowledgement and result for one goal (ROS-free)."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Final, Optional, Protocol

from .runtime import NavigationRuntime
from .waypoints import DEFAULT_FRAME_ID, Pose, Waypoint, planar_distance

# Terminal goal status codes (mirrors action_msgs.msg.GoalStatus)
GOAL_STATUS_SUCCEEDED: Final = 4
GOAL_STATUS_CANCELED: Final = 5
GOAL_STATUS_ABORTED: Final = 6

# Failure reasons reported upstream (centralized to avoid typos)
REASON_SEND_FAILED: Final = "send failed"
REASON_REJECTED: Final = "rejected"
REASON_ABORTED: Final = "aborted"
REASON_CANCELED: Final = "canceled"
REASON_RESULT_FAILED: Final = "result failed"
REASON_SHUTDOWN: Final = "shutdown"

_STATUS_REASONS: Final[dict[int, str]] = {
    GOAL_STATUS_ABORTED: REASON_ABORTED,
    GOAL_STATUS_CANCELED: REASON_CANCELED,
}


class DispatchState(Enum):
    IDLE = auto()
    AWAITING_SERVER = auto()
    SENDING = auto()
    ACCEPTED = auto()
    TERMINAL = auto()


_OUTSTANDING: Final = (DispatchState.AWAITING_SERVER, DispatchState.SENDING, DispatchState.ACCEPTED)


@dataclass(frozen=True)
class GoalRequest:
    waypoint: Waypoint
    pose: Pose
    stamp: float


class FutureLike(Protocol):
    def add_done_callback(self, fn: Callable[["FutureLike"], None]) -> None: ...

    def cancelled(self) -> bool: ...

    def exception(self) -> Optional[BaseException]: ...

    def result(self) -> Any: ...


class NavigationTransport(Protocol):
    def wait_for_server(self, timeout_s: float) -> bool: ...

    def send_goal(self, request: GoalRequest) -> FutureLike: ...


class GoalListener(Protocol):
    def mark_accepted(self) -> None: ...

    def on_goal_succeeded(self) -> None: ...

    def on_goal_failed(self, reason: str) -> None: ...


class GoalDispatchClient:
    """Send one goal at a time and report exactly one terminal outcome per attempt.

    Each call to :meth:`dispatch` opens a new attempt. Completions that belong
    to an older attempt, or arrive after the attempt already reported, are
    dropped.
    """

    def __init__(
        self,
        runtime: NavigationRuntime,
        transport: NavigationTransport,
        *,
        server_wait_period_s: float = 1.0,
        frame_id: str = DEFAULT_FRAME_ID,
    ) -> None:
        if server_wait_period_s <= 0.0:
            raise ValueError("server_wait_period_s must be positive")
        self._runtime = runtime
        self._transport = transport
        self._server_wait_period_s = float(server_wait_period_s)
        self._frame_id = frame_id
        self._lock = threading.Lock()
        self._state = DispatchState.IDLE
        self._attempt = 0
        self._listener: Optional[GoalListener] = None
        self._last_wait_polls = 0

    @property
    def state(self) -> DispatchState:
        with self._lock:
            return self._state

    @property
    def last_wait_polls(self) -> int:
        """Availability polls used by the most recent server wait."""
        return self._last_wait_polls

    def dispatch(self, waypoint: Waypoint, listener: GoalListener) -> None:
        with self._lock:
            if self._state in _OUTSTANDING:
                raise RuntimeError(f"Goal dispatch already in progress (state={self._state.name})")
            self._attempt += 1
            attempt = self._attempt
            self._listener = listener
            self._state = DispatchState.AWAITING_SERVER

        # Any error before the acknowledgement closes the attempt as a send failure.
        try:
            self._send(attempt, waypoint)
        except Exception as exc:  # noqa: BLE001
            self._runtime.logger.error(f"send goal call failed: {exc}")
            self._finish(attempt, succeeded=False, reason=REASON_SEND_FAILED)

    def _send(self, attempt: int, waypoint: Waypoint) -> None:
        self._runtime.publish_state(DispatchState.AWAITING_SERVER.name)
        if not self._await_server(attempt):
            return

        request = GoalRequest(waypoint, waypoint.to_pose(self._frame_id), self._runtime.now())
        self._log_start(waypoint)
        if not self._set_state(attempt, DispatchState.SENDING):
            return
        future = self._transport.send_goal(request)
        future.add_done_callback(lambda done: self._on_goal_response(attempt, done))

    # ------------------------------------------------------------------
    # Server availability

    def _await_server(self, attempt: int) -> bool:
        polls = 0
        while True:
            if not self._runtime.ok():
                self._runtime.logger.warn("Shutdown requested while waiting for action server")
                self._finish(attempt, succeeded=False, reason=REASON_SHUTDOWN)
                return False
            polls += 1
            if self._transport.wait_for_server(self._server_wait_period_s):
                break
            self._runtime.logger.warn("Waiting for action server")
        self._last_wait_polls = polls
        if polls > 1:
            self._runtime.logger.info(f"Action server available after {polls} polls")
        return True

    def _log_start(self, waypoint: Waypoint) -> None:
        current = self._runtime.current_position()
        if current is None:
            self._runtime.logger.warn(f"Starting navigation to {waypoint.label()}")
            return
        distance = planar_distance(current, waypoint.position)
        self._runtime.logger.warn(
            f"Starting navigation to {waypoint.label()} (distance to goal {distance:.2f} m)"
        )

    # ------------------------------------------------------------------
    # Transport callbacks

    def _on_goal_response(self, attempt: int, future: FutureLike) -> None:
        if future.cancelled() or future.exception() is not None:
            error = None if future.cancelled() else future.exception()
            self._runtime.logger.error(f"send goal call failed: {error or 'cancelled'}")
            self._finish(attempt, succeeded=False, reason=REASON_SEND_FAILED)
            return

        handle = future.result()
        if handle is None or not getattr(handle, "accepted", False):
            self._runtime.logger.error("Goal was rejected by server")
            self._finish(attempt, succeeded=False, reason=REASON_REJECTED)
            return

        with self._lock:
            listener = self._listener if attempt == self._attempt else None
        if listener is None or not self._set_state(attempt, DispatchState.ACCEPTED):
            return
        listener.mark_accepted()
        self._runtime.logger.info("Goal accepted by server; awaiting result")

        try:
            result_future = handle.get_result_async()
        except Exception as exc:  # noqa: BLE001
            self._runtime.logger.error(f"get result call failed: {exc}")
            self._finish(attempt, succeeded=False, reason=REASON_RESULT_FAILED)
            return
        result_future.add_done_callback(lambda done: self._on_result(attempt, done))

    def _on_result(self, attempt: int, future: FutureLike) -> None:
        if future.cancelled() or future.exception() is not None:
            error = None if future.cancelled() else future.exception()
            self._runtime.logger.error(f"Result request failed: {error or 'cancelled'}")
            self._finish(attempt, succeeded=False, reason=REASON_RESULT_FAILED)
            return

        status = getattr(future.result(), "status", None)
        if status == GOAL_STATUS_SUCCEEDED:
            self._runtime.logger.warn("Navigation completed")
            self._finish(attempt, succeeded=True)
            return
        reason = _STATUS_REASONS.get(status, f"status {status}")
        self._runtime.logger.error(f"Navigation did not succeed ({reason})")
        self._finish(attempt, succeeded=False, reason=reason)

    # ------------------------------------------------------------------
    # State helpers

    def _set_state(self, attempt: int, state: DispatchState) -> bool:
        with self._lock:
            if attempt != self._attempt or self._state not in _OUTSTANDING:
                return False
            self._state = state
        self._runtime.publish_state(state.name)
        return True

    def _finish(self, attempt: int, *, succeeded: bool, reason: Optional[str] = None) -> None:
        with self._lock:
            if attempt != self._attempt or self._state not in _OUTSTANDING:
                return
            self._state = DispatchState.TERMINAL
            listener = self._listener
            self._listener = None
        try:
            self._runtime.publish_state("SUCCEEDED" if succeeded else "FAILED")
        except Exception as exc:  # noqa: BLE001
            self._runtime.logger.error(f"State publish failed: {exc}")

        if listener is not None:
            if succeeded:
                listener.on_goal_succeeded()
            else:
                listener.on_goal_failed(reason or REASON_SEND_FAILED)

        with self._lock:
            if attempt == self._attempt and self._state is DispatchState.TERMINAL:
                self._state = DispatchState.IDLE


__all__ = [
    "DispatchState",
    "FutureLike",
    "GOAL_STATUS_ABORTED",
    "GOAL_STATUS_CANCELED",
    "GOAL_STATUS_SUCCEEDED",
    "GoalDispatchClient",
    "GoalListener",
    "GoalRequest",
    "NavigationTransport",
    "REASON_ABORTED",
    "REASON_CANCELED",
    "REASON_REJECTED",
    "REASON_RESULT_FAILED",
    "REASON_SEND_FAILED",
    "REASON_SHUTDOWN",
]
