"""Launch the waypoint manager with the shared parameter file."""

from __future__ import annotations

from pathlib import Path

import yaml
from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, OpaqueFunction
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def _load_yaml(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError):
        return {}


def _manager_defaults(config: dict) -> dict:
    params = config.get("waypoint_manager", {}).get("ros__parameters", {})
    return params if isinstance(params, dict) else {}


def generate_launch_description() -> LaunchDescription:
    pkg_share = Path(get_package_share_directory("waypoint_manager"))
    default_params = str(pkg_share / "param" / "waypoint_manager.yaml")
    default_route = str(pkg_share / "param" / "marathon_route.yaml")

    declare_params = DeclareLaunchArgument(
        "params_file",
        default_value=default_params,
        description="YAML file with waypoint_manager parameters",
    )
    declare_waypoints = DeclareLaunchArgument(
        "waypoints_file",
        default_value="",
        description="Route YAML file (overrides params file)",
    )
    declare_next_wp = DeclareLaunchArgument(
        "next_wp",
        default_value="",
        description="Index of the first waypoint to visit (overrides params file)",
    )

    def _launch_setup(context, *args, **kwargs):
        params_path = Path(LaunchConfiguration("params_file").perform(context))
        waypoints_override = LaunchConfiguration("waypoints_file").perform(context)
        next_wp_override = LaunchConfiguration("next_wp").perform(context)
        defaults = _manager_defaults(_load_yaml(params_path))

        overrides = {
            "waypoints_file": waypoints_override or str(defaults.get("waypoints_file") or "") or default_route,
        }
        if next_wp_override:
            overrides["next_wp"] = int(next_wp_override)

        return [
            Node(
                package="waypoint_manager",
                executable="waypoint_manager",
                name="waypoint_manager",
                output="screen",
                emulate_tty=True,
                parameters=[str(params_path), overrides],
            )
        ]

    return LaunchDescription(
        [
            declare_params,
            declare_waypoints,
            declare_next_wp,
            OpaqueFunction(function=_launch_setup),
        ]
    )
