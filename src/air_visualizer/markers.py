from __future__ import annotations

import logging

import cv2
import numpy as np

from .geometry import MARKER_ID_ROLES, Marker, MarkerRole, QuadMarkers

logger = logging.getLogger(__name__)

MARKER_DICTIONARY_ID = cv2.aruco.DICT_4X4_50


def marker_dictionary() -> cv2.aruco.Dictionary:
    return cv2.aruco.getPredefinedDictionary(MARKER_DICTIONARY_ID)


def generate_marker_image(marker_id: int, side_px: int = 200, border_bits: int = 1) -> np.ndarray:
    """Render a printable marker from the fixed 4x4, 50-symbol dictionary."""
    if not 0 <= marker_id < 50:
        raise ValueError("marker_id must be in [0, 50)")
    if side_px < 6 + 2 * border_bits:
        raise ValueError("side_px is too small for a 4x4 marker")
    return cv2.aruco.generateImageMarker(marker_dictionary(), marker_id, side_px, borderBits=border_bits)


class MarkerDetector:
    """Locates the four role markers bounding the region of interest."""

    def __init__(self, parameters: cv2.aruco.DetectorParameters | None = None) -> None:
        self.dictionary = marker_dictionary()
        self.parameters = parameters or cv2.aruco.DetectorParameters()
        self.detector = cv2.aruco.ArucoDetector(self.dictionary, self.parameters)

    def detect_markers(self, gray: np.ndarray) -> dict[MarkerRole, Marker]:
        """Return every role marker visible in the frame, keyed by role."""
        corners, ids, _ = self.detector.detectMarkers(gray)
        found: dict[MarkerRole, Marker] = {}
        if ids is None:
            return found

        for marker_corners, marker_id in zip(corners, ids.flatten()):
            role = MARKER_ID_ROLES.get(int(marker_id))
            if role is None:
                continue
            found[role] = Marker.from_corners(marker_corners)
        return found

    def detect(self, gray: np.ndarray) -> QuadMarkers | None:
        found = self.detect_markers(gray)
        if len(found) < len(MarkerRole):
            logger.debug("partial marker detection: %s", sorted(role.value for role in found))
            return None

        return QuadMarkers(
            top_left_marker=found[MarkerRole.TOP_LEFT],
            top_right_marker=found[MarkerRole.TOP_RIGHT],
            bottom_right_marker=found[MarkerRole.BOTTOM_RIGHT],
            bottom_left_marker=found[MarkerRole.BOTTOM_LEFT],
        )
