"""Waypoint model and route loader for the cyclic goal sequencer."""

from __future__ import annotations

import math
import pathlib
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import yaml

DEFAULT_FRAME_ID = "map"

Point2D = Tuple[float, float]


class ConfigurationError(RuntimeError):
    """Raised when the waypoint route or start index is invalid."""


@dataclass(frozen=True)
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def from_yaw(cls, yaw: float) -> "Quaternion":
        """Planar rotation about Z (roll = pitch = 0)."""
        half = 0.5 * yaw
        return cls(0.0, 0.0, math.sin(half), math.cos(half)).normalized()

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w)

    def normalized(self) -> "Quaternion":
        n = self.norm()
        if n == 0.0:
            return Quaternion()
        return Quaternion(self.x / n, self.y / n, self.z / n, self.w / n)

    def yaw(self) -> float:
        siny_cosp = 2.0 * (self.w * self.z + self.x * self.y)
        cosy_cosp = 1.0 - 2.0 * (self.y * self.y + self.z * self.z)
        return math.atan2(siny_cosp, cosy_cosp)


@dataclass(frozen=True)
class Pose:
    x: float
    y: float
    orientation: Quaternion
    z: float = 0.0
    frame_id: str = DEFAULT_FRAME_ID


@dataclass(frozen=True)
class Waypoint:
    x: float
    y: float
    yaw: float = 0.0
    name: Optional[str] = None

    @property
    def orientation(self) -> Quaternion:
        return Quaternion.from_yaw(self.yaw)

    @property
    def position(self) -> Point2D:
        return (self.x, self.y)

    def to_pose(self, frame_id: str = DEFAULT_FRAME_ID) -> Pose:
        return Pose(self.x, self.y, self.orientation, frame_id=frame_id)

    def label(self) -> str:
        return self.name or f"({self.x:.2f}, {self.y:.2f})"


class WaypointList:
    """Ordered, fixed-size and read-only sequence of waypoints (never empty)."""

    def __init__(self, waypoints: Sequence[Waypoint]) -> None:
        items = tuple(waypoints)
        if not items:
            raise ConfigurationError("Route requires at least one waypoint")
        for idx, item in enumerate(items):
            if not isinstance(item, Waypoint):
                raise ConfigurationError(f"Route entry #{idx} is not a Waypoint: {item!r}")
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Waypoint:
        return self._items[index]

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"WaypointList({len(self._items)} waypoints)"


def planar_distance(a: Point2D, b: Point2D) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def validate_start_index(index: object, count: int) -> int:
    """Return ``index`` as an int if it addresses one of ``count`` waypoints."""

    if isinstance(index, bool) or not isinstance(index, int):
        raise ConfigurationError(f"Start index must be an integer, got {index!r}")
    if count < 1:
        raise ConfigurationError("Route requires at least one waypoint")
    if not 0 <= index < count:
        raise ConfigurationError(f"Start index {index} outside [0, {count})")
    return index


def load_waypoints(path: pathlib.Path) -> WaypointList:
    try:
        text = pathlib.Path(path).read_text()
    except OSError as exc:
        raise ConfigurationError(f"Route file not readable: {path} ({exc})") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Route file is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Route file must contain a top-level mapping")
    if data.get("api_version") != 1:
        raise ConfigurationError("Route 'api_version' must be 1")

    raw = data.get("waypoints")
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("Route must define a non-empty 'waypoints' list")

    waypoints: List[Waypoint] = [_parse_waypoint(entry, idx) for idx, entry in enumerate(raw)]
    return WaypointList(waypoints)


def _parse_waypoint(entry: object, idx: int) -> Waypoint:
    if isinstance(entry, dict):
        if "x" not in entry or "y" not in entry:
            raise ConfigurationError(f"Waypoint #{idx} must define 'x' and 'y'")
        name = entry.get("name")
        return Waypoint(
            _coerce_float(entry["x"], "x", idx),
            _coerce_float(entry["y"], "y", idx),
            _coerce_float(entry.get("yaw", 0.0), "yaw", idx),
            str(name) if name is not None else None,
        )
    if isinstance(entry, (list, tuple)):
        if len(entry) not in (2, 3):
            raise ConfigurationError(f"Waypoint #{idx} must be [x, y] or [x, y, yaw], got: {entry!r}")
        values = [_coerce_float(value, key, idx) for key, value in zip(("x", "y", "yaw"), entry)]
        return Waypoint(*values)
    raise ConfigurationError(f"Waypoint #{idx} must be a mapping or a sequence, got: {entry!r}")


def _coerce_float(value: object, key: str, idx: int) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"Waypoint #{idx} '{key}' must be a number")
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Waypoint #{idx} '{key}' must be a number") from exc
    if not math.isfinite(result):
        raise ConfigurationError(f"Waypoint #{idx} '{key}' must be finite")
    return result


__all__ = [
    "ConfigurationError",
    "DEFAULT_FRAME_ID",
    "Pose",
    "Quaternion",
    "Waypoint",
    "WaypointList",
    "load_waypoints",
    "planar_distance",
    "validate_start_index",
]
