"""Waypoint controller that wires a runtime with the sequencer and the dispatch client."""

from __future__ import annotations

import pathlib
from typing import Union

from .dispatch import GoalDispatchClient, NavigationTransport
from .runtime import NavigationRuntime
from .sequencer import WaypointSequencer
from .stats import SequencerStats
from .waypoints import (
    DEFAULT_FRAME_ID,
    ConfigurationError,
    WaypointList,
    load_waypoints,
    validate_start_index,
)


class WaypointController:
    def __init__(
        self,
        runtime: NavigationRuntime,
        transport: NavigationTransport,
        route: Union[WaypointList, str, pathlib.Path],
        *,
        start_index: int = 0,
        server_wait_period_s: float = 1.0,
        frame_id: str = DEFAULT_FRAME_ID,
    ) -> None:
        self._runtime = runtime
        try:
            self._waypoints = route if isinstance(route, WaypointList) else load_waypoints(pathlib.Path(route))
            validate_start_index(start_index, len(self._waypoints))
        except ConfigurationError as exc:
            runtime.logger.error(f"Waypoint configuration error: {exc}")
            raise

        self._client = GoalDispatchClient(
            runtime,
            transport,
            server_wait_period_s=server_wait_period_s,
            frame_id=frame_id,
        )
        self._sequencer = WaypointSequencer(
            runtime,
            self._waypoints,
            self._client,
            start_index=start_index,
        )

    @property
    def waypoints(self) -> WaypointList:
        return self._waypoints

    @property
    def sequencer(self) -> WaypointSequencer:
        return self._sequencer

    @property
    def client(self) -> GoalDispatchClient:
        return self._client

    def arm(self) -> None:
        self._sequencer.arm()

    def tick(self) -> None:
        self._sequencer.tick()

    def stats(self) -> SequencerStats:
        return self._sequencer.stats()
