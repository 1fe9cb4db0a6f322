from __future__ import annotations

import cv2
import numpy as np

from .geometry import QuadMarkers


def draw_marker_area(
    frame: np.ndarray,
    quad: QuadMarkers,
    color: tuple[int, int, int, int] = (255, 0, 0, 255),
    radius_px: int = 12,
    thickness_px: int = 2,
) -> np.ndarray:
    """Return a copy of ``frame`` with the region corners and outline drawn on it."""
    annotated = frame.copy()
    corners = np.rint(quad.region_corners()).astype(np.int32)
    for x, y in corners:
        cv2.circle(annotated, (int(x), int(y)), radius_px, color, -1)
    cv2.polylines(annotated, [corners.reshape(-1, 1, 2)], True, color, thickness_px)
    return annotated
