from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass(frozen=True)
class RawFrame:
    """Planar YUV 4:2:0 camera frame: full-size luma plus two quarter-size chroma planes."""

    y: np.ndarray
    u: np.ndarray
    v: np.ndarray

    def __post_init__(self) -> None:
        if self.y.ndim != 2:
            raise ValueError("luma plane must be two-dimensional")
        height, width = self.y.shape
        if height % 2 or width % 2:
            raise ValueError("4:2:0 frames need even width and height")
        chroma_shape = (height // 2, width // 2)
        if self.u.shape != chroma_shape or self.v.shape != chroma_shape:
            raise ValueError(
                f"chroma planes must be {chroma_shape}, got {self.u.shape} and {self.v.shape}"
            )

    @property
    def width(self) -> int:
        return int(self.y.shape[1])

    @property
    def height(self) -> int:
        return int(self.y.shape[0])

    @classmethod
    def from_bgr(cls, frame: np.ndarray) -> RawFrame:
        height, width = frame.shape[:2]
        buffer = cv2.cvtColor(frame, cv2.COLOR_BGR2YUV_I420)
        return cls._from_i420(buffer.reshape(-1), width, height)

    @classmethod
    def _from_i420(cls, data: np.ndarray, width: int, height: int) -> RawFrame:
        luma_size = width * height
        chroma_size = luma_size // 4
        chroma_shape = (height // 2, width // 2)
        return cls(
            y=data[:luma_size].reshape(height, width),
            u=data[luma_size : luma_size + chroma_size].reshape(chroma_shape),
            v=data[luma_size + chroma_size :].reshape(chroma_shape),
        )

    def to_i420(self) -> np.ndarray:
        packed = np.concatenate([self.y.reshape(-1), self.u.reshape(-1), self.v.reshape(-1)])
        return packed.reshape(self.height * 3 // 2, self.width)


def yuv_to_rgba(raw: RawFrame) -> np.ndarray:
    return cv2.cvtColor(raw.to_i420(), cv2.COLOR_YUV2RGBA_I420)


def rgba_to_gray(rgba: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)


def crop_to_even(frame: np.ndarray) -> np.ndarray:
    """Drop a trailing row/column so the frame can be 4:2:0 subsampled."""
    height, width = frame.shape[:2]
    return np.ascontiguousarray(frame[: height - height % 2, : width - width % 2])
