from __future__ import annotations

import cv2
import numpy as np

from .geometry import QuadMarkers


def compute_homography(quad: QuadMarkers, out_width: int, out_height: int) -> np.ndarray:
    """Perspective transform taking the marker region onto the full output rectangle."""
    if out_width <= 0 or out_height <= 0:
        raise ValueError("output size must be positive")

    source = quad.region_corners()
    destination = np.array(
        [
            [0.0, 0.0],
            [float(out_width), 0.0],
            [float(out_width), float(out_height)],
            [0.0, float(out_height)],
        ],
        dtype=np.float32,
    )
    return cv2.getPerspectiveTransform(source, destination)


def warp(frame: np.ndarray, transform: np.ndarray, out_width: int, out_height: int) -> np.ndarray:
    return cv2.warpPerspective(
        frame,
        transform,
        (out_width, out_height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
    )


def rectify_region(frame: np.ndarray, quad: QuadMarkers) -> np.ndarray:
    # The region always fills the source-sized canvas, whatever the quad's aspect ratio.
    height, width = frame.shape[:2]
    transform = compute_homography(quad, width, height)
    return warp(frame, transform, width, height)
