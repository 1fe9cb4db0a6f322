from __future__ import annotations

import cv2
import numpy as np
import pytest

from air_visualizer.geometry import Marker, Point2D, QuadMarkers
from air_visualizer.rectify import compute_homography, rectify_region, warp


def _quad_from_region(corners: list[tuple[float, float]]) -> QuadMarkers:
    markers = [Marker(*(Point2D(x, y) for _ in range(4))) for x, y in corners]
    return QuadMarkers(*markers)


def test_identity_quad_leaves_frame_unchanged() -> None:
    rng = np.random.default_rng(7)
    frame = rng.integers(0, 256, size=(60, 80), dtype=np.uint8)
    quad = _quad_from_region([(0, 0), (80, 0), (80, 60), (0, 60)])

    rectified = rectify_region(frame, quad)

    assert rectified.shape == frame.shape
    interior = np.abs(rectified[1:-1, 1:-1].astype(int) - frame[1:-1, 1:-1].astype(int))
    assert interior.max() <= 1


def test_homography_maps_region_corners_onto_output_rectangle() -> None:
    quad = _quad_from_region([(12, 8), (90, 15), (85, 70), (10, 64)])

    transform = compute_homography(quad, 200, 100)
    mapped = cv2.perspectiveTransform(quad.region_corners().reshape(-1, 1, 2), transform)

    assert transform.shape == (3, 3)
    assert np.allclose(mapped.reshape(4, 2), [[0, 0], [200, 0], [200, 100], [0, 100]], atol=1e-3)


def test_rectified_region_fills_source_sized_canvas() -> None:
    frame = np.zeros((120, 160), dtype=np.uint8)
    frame[40:80, 40:120] = 255
    quad = _quad_from_region([(40, 40), (120, 40), (120, 80), (40, 80)])

    rectified = rectify_region(frame, quad)

    assert rectified.shape == (120, 160)
    assert rectified[5:-5, 5:-5].min() == 255


def test_warp_accepts_rgba_frames() -> None:
    frame = np.full((40, 40, 4), 9, dtype=np.uint8)

    warped = warp(frame, np.eye(3), 20, 10)

    assert warped.shape == (10, 20, 4)


def test_homography_requires_positive_output_size() -> None:
    quad = _quad_from_region([(0, 0), (10, 0), (10, 10), (0, 10)])

    with pytest.raises(ValueError):
        compute_homography(quad, 0, 10)
