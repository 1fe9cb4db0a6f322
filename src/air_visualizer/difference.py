from __future__ import annotations

import cv2
import numpy as np

DEFAULT_CONTRAST_GAIN = 6.0


def abs_diff(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    if first.shape != second.shape:
        raise ValueError(f"frame shapes differ: {first.shape} vs {second.shape}")
    if first.dtype != second.dtype:
        raise ValueError(f"frame dtypes differ: {first.dtype} vs {second.dtype}")
    return cv2.absdiff(first, second)


def emphasize_contrast(frame: np.ndarray, gain: float = DEFAULT_CONTRAST_GAIN) -> np.ndarray:
    """Scale intensities by ``gain``, saturating at the dtype's maximum."""
    if gain <= 0:
        raise ValueError("gain must be positive")
    return cv2.multiply(frame, np.full_like(frame, 1), scale=gain)
