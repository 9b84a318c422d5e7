"""Waypoint manager package exposing the ROS node and the core sequencing logic."""

from .core import (
    ConfigurationError,
    GoalDispatchClient,
    Waypoint,
    WaypointController,
    WaypointList,
    WaypointSequencer,
    load_waypoints,
)

__all__ = [
    "WaypointController",
    "WaypointSequencer",
    "GoalDispatchClient",
    "ConfigurationError",
    "Waypoint",
    "WaypointList",
    "load_waypoints",
]
