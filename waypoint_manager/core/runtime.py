"""Protocols separating the ROS-free core from the rclpy adapters."""

from __future__ import annotations

from typing import Optional, Protocol

from .waypoints import Point2D


class LoggerLike(Protocol):
    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...

    def debug(self, msg: str) -> None: ...


class NavigationRuntime(Protocol):
    @property
    def logger(self) -> LoggerLike: ...

    def now(self) -> float: ...  # seconds

    def ok(self) -> bool: ...  # False once the process is shutting down

    def publish_state(self, name: str) -> None: ...

    def current_position(self) -> Optional[Point2D]: ...


__all__ = ["LoggerLike", "NavigationRuntime"]
