"""Core waypoint sequencing logic (ROS-agnostic)."""

from .controller import WaypointController
from .dispatch import (
    DispatchState,
    GoalDispatchClient,
    GoalRequest,
    NavigationTransport,
)
from .runtime import LoggerLike, NavigationRuntime
from .sequencer import InFlightGoal, InFlightStatus, WaypointSequencer
from .stats import SequencerStats, success_rate
from .waypoints import (
    ConfigurationError,
    Pose,
    Quaternion,
    Waypoint,
    WaypointList,
    load_waypoints,
    planar_distance,
    validate_start_index,
)

__all__ = [
    "WaypointController",
    "WaypointSequencer",
    "GoalDispatchClient",
    "DispatchState",
    "GoalRequest",
    "NavigationTransport",
    "NavigationRuntime",
    "LoggerLike",
    "InFlightGoal",
    "InFlightStatus",
    "SequencerStats",
    "success_rate",
    "ConfigurationError",
    "Pose",
    "Quaternion",
    "Waypoint",
    "WaypointList",
    "load_waypoints",
    "planar_distance",
    "validate_start_index",
]
