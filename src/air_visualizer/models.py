from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AnalyzerConfig:
    """Tunables for the per-frame flow analysis pipeline."""

    history_size: int = 5
    capture_delay_frames: int = 10
    redetect_interval_frames: int = 20
    contrast_gain: float = 6.0
    overlay_color: tuple[int, int, int, int] = (255, 0, 0, 255)
    overlay_radius_px: int = 12
    overlay_thickness_px: int = 2
    target_width: int = 1920
    target_height: int = 1080

    def __post_init__(self) -> None:
        if self.history_size <= 0:
            raise ValueError("history_size must be positive")
        if self.capture_delay_frames <= 0:
            raise ValueError("capture_delay_frames must be positive")
        if self.redetect_interval_frames <= 0:
            raise ValueError("redetect_interval_frames must be positive")
        if self.contrast_gain <= 0:
            raise ValueError("contrast_gain must be positive")
        if self.target_width <= 0 or self.target_height <= 0:
            raise ValueError("target resolution must be positive")
