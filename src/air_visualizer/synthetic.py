from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import cv2
import numpy as np

from .geometry import MARKER_ROLE_IDS, MarkerRole
from .markers import generate_marker_image


@dataclass(frozen=True)
class SyntheticSceneConfig:
    """Layout of a synthetic test sheet with the four role markers in its corners."""

    width: int = 640
    height: int = 480
    marker_side_px: int = 80
    margin_px: int = 30
    paper_level: int = 235
    offset_px: tuple[int, int] = (0, 0)
    noise_sigma: float = 0.0
    seed: int = 42

    def __post_init__(self) -> None:
        if self.width % 2 or self.height % 2:
            raise ValueError("scene width and height must be even")
        min_span = 2 * (self.margin_px + self.marker_side_px) + 2 * max(
            abs(self.offset_px[0]), abs(self.offset_px[1])
        )
        if min_span > min(self.width, self.height):
            raise ValueError("markers do not fit in the scene")


def marker_origins(config: SyntheticSceneConfig) -> dict[MarkerRole, tuple[int, int]]:
    """Top-left pixel of each role marker's square."""
    dx, dy = config.offset_px
    near = config.margin_px
    far_x = config.width - config.margin_px - config.marker_side_px
    far_y = config.height - config.margin_px - config.marker_side_px
    return {
        MarkerRole.TOP_LEFT: (near + dx, near + dy),
        MarkerRole.TOP_RIGHT: (far_x + dx, near + dy),
        MarkerRole.BOTTOM_RIGHT: (far_x + dx, far_y + dy),
        MarkerRole.BOTTOM_LEFT: (near + dx, far_y + dy),
    }


def expected_region_corners(config: SyntheticSceneConfig) -> np.ndarray:
    """Exterior region corners (TL, TR, BR, BL) a detector should report for the scene."""
    origins = marker_origins(config)
    side = float(config.marker_side_px)
    tl = origins[MarkerRole.TOP_LEFT]
    tr = origins[MarkerRole.TOP_RIGHT]
    br = origins[MarkerRole.BOTTOM_RIGHT]
    bl = origins[MarkerRole.BOTTOM_LEFT]
    return np.array(
        [
            [tl[0], tl[1]],
            [tr[0] + side, tr[1]],
            [br[0] + side, br[1] + side],
            [bl[0], bl[1] + side],
        ],
        dtype=np.float32,
    )


def render_marker_scene(
    config: SyntheticSceneConfig | None = None,
    missing_roles: Iterable[MarkerRole] = (),
) -> np.ndarray:
    """Grayscale sheet with the role markers pasted in, optionally leaving some out."""
    cfg = config or SyntheticSceneConfig()
    skipped = set(missing_roles)
    scene = np.full((cfg.height, cfg.width), cfg.paper_level, dtype=np.uint8)
    side = cfg.marker_side_px

    for role, (x, y) in marker_origins(cfg).items():
        if role in skipped:
            continue
        scene[y : y + side, x : x + side] = generate_marker_image(MARKER_ROLE_IDS[role], side)

    if cfg.noise_sigma > 0:
        rng = np.random.default_rng(cfg.seed)
        noise = rng.normal(0.0, cfg.noise_sigma, size=scene.shape)
        scene = np.clip(np.rint(scene.astype(np.float64) + noise), 0, 255).astype(np.uint8)
    return scene


def add_dye_plume(
    gray: np.ndarray,
    center: tuple[float, float],
    radius_px: float,
    intensity: float = -120.0,
) -> np.ndarray:
    """Overlay a soft Gaussian blob; negative intensity darkens like smoke on paper."""
    if radius_px <= 0:
        raise ValueError("radius_px must be positive")
    height, width = gray.shape[:2]
    ys, xs = np.mgrid[0:height, 0:width]
    cx, cy = center
    blob = np.exp(-((xs - cx) ** 2 + (ys - cy) ** 2) / (2.0 * radius_px**2))
    shaded = gray.astype(np.float64) + intensity * blob
    return np.clip(np.rint(shaded), 0, 255).astype(np.uint8)


def plume_sequence(
    config: SyntheticSceneConfig,
    frames: int,
    start: tuple[float, float],
    velocity_px: tuple[float, float],
    radius_px: float = 25.0,
    intensity: float = -120.0,
) -> list[np.ndarray]:
    """Marker scenes with a plume drifting at constant velocity, one per frame."""
    scene = render_marker_scene(config)
    sequence: list[np.ndarray] = []
    for index in range(frames):
        center = (start[0] + velocity_px[0] * index, start[1] + velocity_px[1] * index)
        sequence.append(add_dye_plume(scene, center, radius_px, intensity))
    return sequence


def gray_to_rgba(gray: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGBA)


def gray_to_bgr(gray: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
