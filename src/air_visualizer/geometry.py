from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class MarkerRole(Enum):
    """Position of a fiducial marker in the scene."""

    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_RIGHT = "bottom_right"
    BOTTOM_LEFT = "bottom_left"


# Fixed contract with the printed marker sheet; not configurable at runtime.
MARKER_ROLE_IDS: dict[MarkerRole, int] = {
    MarkerRole.TOP_LEFT: 0,
    MarkerRole.TOP_RIGHT: 1,
    MarkerRole.BOTTOM_RIGHT: 2,
    MarkerRole.BOTTOM_LEFT: 3,
}
MARKER_ID_ROLES: dict[int, MarkerRole] = {
    marker_id: role for role, marker_id in MARKER_ROLE_IDS.items()
}


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(self.x + other.x, self.y + other.y)

    def __truediv__(self, value: float) -> Point2D:
        return Point2D(self.x / value, self.y / value)


ORIGIN = Point2D(0.0, 0.0)


@dataclass(frozen=True)
class Marker:
    """Corners of one detected fiducial, in frame pixel coordinates."""

    top_left: Point2D
    top_right: Point2D
    bottom_right: Point2D
    bottom_left: Point2D

    @classmethod
    def from_corners(cls, corners: np.ndarray) -> Marker:
        """Build from a detector corner array ordered clockwise from top-left."""
        points = np.asarray(corners, dtype=np.float64).reshape(4, 2)
        return cls(*(Point2D(float(x), float(y)) for x, y in points))

    @classmethod
    def zero(cls) -> Marker:
        return cls(ORIGIN, ORIGIN, ORIGIN, ORIGIN)

    def __add__(self, other: Marker) -> Marker:
        return Marker(
            self.top_left + other.top_left,
            self.top_right + other.top_right,
            self.bottom_right + other.bottom_right,
            self.bottom_left + other.bottom_left,
        )

    def __truediv__(self, value: float) -> Marker:
        return Marker(
            self.top_left / value,
            self.top_right / value,
            self.bottom_right / value,
            self.bottom_left / value,
        )


@dataclass(frozen=True)
class QuadMarkers:
    """All four role markers seen together in a single frame."""

    top_left_marker: Marker
    top_right_marker: Marker
    bottom_right_marker: Marker
    bottom_left_marker: Marker

    def region_corners(self) -> np.ndarray:
        """Exterior corners of the region, ordered TL, TR, BR, BL, as float32 (4, 2)."""
        corners = (
            self.top_left_marker.top_left,
            self.top_right_marker.top_right,
            self.bottom_right_marker.bottom_right,
            self.bottom_left_marker.bottom_left,
        )
        return np.array([[point.x, point.y] for point in corners], dtype=np.float32)
