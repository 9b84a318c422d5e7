"""Cyclic waypoint sequencer: owns the cursor and the single in-flight goal slot (ROS-free)."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Final, Optional, Protocol, Sequence, Union

from .runtime import NavigationRuntime
from .stats import SequencerStats, format_stats
from .waypoints import Waypoint, WaypointList, validate_start_index

REASON_DISPATCH_ERROR: Final = "dispatch error"


class InFlightStatus(Enum):
    PENDING = auto()
    ACCEPTED = auto()
    COMPLETED = auto()


@dataclass
class InFlightGoal:
    waypoint: Waypoint
    index: int
    dispatched_at: float
    status: InFlightStatus = InFlightStatus.PENDING


class GoalDispatcher(Protocol):
    def dispatch(self, waypoint: Waypoint, listener: "WaypointSequencer") -> None: ...


class WaypointSequencer:
    """Decides when the next goal is dispatched and advances the cursor on success.

    Completion callbacks are the only path that clears the in-flight slot; a
    failed goal leaves the cursor untouched so the same waypoint is retried on
    the next tick.
    """

    def __init__(
        self,
        runtime: NavigationRuntime,
        waypoints: Union[WaypointList, Sequence[Waypoint]],
        dispatcher: GoalDispatcher,
        *,
        start_index: int = 0,
    ) -> None:
        self._runtime = runtime
        self._waypoints = waypoints if isinstance(waypoints, WaypointList) else WaypointList(waypoints)
        self._cursor = validate_start_index(start_index, len(self._waypoints))
        self._dispatcher = dispatcher
        self._lock = threading.RLock()
        self._armed = False
        self._in_flight: Optional[InFlightGoal] = None
        self._dispatched = 0
        self._succeeded = 0
        self._failed = 0
        self._laps = 0

    # ------------------------------------------------------------------
    # Accessors

    @property
    def waypoints(self) -> WaypointList:
        return self._waypoints

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._armed

    @property
    def in_flight(self) -> Optional[InFlightGoal]:
        with self._lock:
            if self._in_flight is None:
                return None
            return dataclasses.replace(self._in_flight)

    @property
    def current_waypoint(self) -> Waypoint:
        with self._lock:
            return self._waypoints[self._cursor]

    def stats(self) -> SequencerStats:
        with self._lock:
            return SequencerStats(self._dispatched, self._succeeded, self._failed, self._laps)

    # ------------------------------------------------------------------
    # Trigger and scheduling

    def arm(self) -> None:
        with self._lock:
            first = not self._armed
            self._armed = True
        if first:
            self._runtime.logger.info(
                f"Start signal received; navigating from waypoint {self.cursor + 1}/{len(self._waypoints)}"
            )
            self._runtime.publish_state("ARMED")
        else:
            self._runtime.logger.debug("Start signal ignored: already armed")

    def tick(self) -> None:
        with self._lock:
            if not self._armed or self._in_flight is not None:
                return
            index = self._cursor
            waypoint = self._waypoints[index]
            self._in_flight = InFlightGoal(waypoint, index, self._runtime.now())
            self._dispatched += 1

        self._runtime.logger.info(
            f"navigate_to_pose: waypoint {index + 1}/{len(self._waypoints)} {waypoint.label()}"
        )
        try:
            self._dispatcher.dispatch(waypoint, self)
        except Exception as exc:  # noqa: BLE001
            self._runtime.logger.error(f"Dispatch of waypoint {index + 1} raised: {exc}")
            self.on_goal_failed(REASON_DISPATCH_ERROR)

    # ------------------------------------------------------------------
    # Dispatch callbacks

    def mark_accepted(self) -> None:
        with self._lock:
            if self._in_flight is not None:
                self._in_flight.status = InFlightStatus.ACCEPTED

    def on_goal_succeeded(self) -> None:
        with self._lock:
            if self._in_flight is not None:
                self._in_flight.status = InFlightStatus.COMPLETED
            self._in_flight = None
            reached = self._cursor
            self._cursor = (self._cursor + 1) % len(self._waypoints)
            self._succeeded += 1
            lap_done = self._cursor == 0
            if lap_done:
                self._laps += 1
            nxt = self._cursor
            stats = SequencerStats(self._dispatched, self._succeeded, self._failed, self._laps)

        self._runtime.logger.info(
            f"Waypoint {reached + 1}/{len(self._waypoints)} reached; next waypoint {nxt + 1}"
        )
        if lap_done:
            self._runtime.logger.info(f"Lap {stats.laps} complete ({format_stats(stats)})")
            self._runtime.publish_state("LAP_COMPLETE")

    def on_goal_failed(self, reason: str) -> None:
        with self._lock:
            if self._in_flight is not None:
                self._in_flight.status = InFlightStatus.COMPLETED
            self._in_flight = None
            self._failed += 1
            held = self._cursor

        self._runtime.logger.warn(
            f"Goal for waypoint {held + 1}/{len(self._waypoints)} failed ({reason}); retrying on next tick"
        )


__all__ = [
    "GoalDispatcher",
    "InFlightGoal",
    "InFlightStatus",
    "REASON_DISPATCH_ERROR",
    "WaypointSequencer",
]
