from __future__ import annotations

import logging
from collections.abc import Iterator

import cv2

from .color import RawFrame, crop_to_even

logger = logging.getLogger(__name__)


class CameraUnavailableError(RuntimeError):
    """The camera could not be opened or stopped delivering frames."""


class CameraSource:
    """OpenCV capture device delivering planar YUV frames.

    The requested resolution is a hint; the delivered size is whatever the device
    negotiates and is reported through ``width``/``height`` after ``open``.
    """

    def __init__(self, index: int = 0, width: int = 1920, height: int = 1080) -> None:
        self.index = index
        self.requested_width = width
        self.requested_height = height
        self.width = 0
        self.height = 0
        self._capture: cv2.VideoCapture | None = None

    def open(self) -> None:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(f"failed to open camera {self.index}")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.requested_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.requested_height)
        self.width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._capture = capture
        logger.info(
            "camera %d opened at %dx%d (requested %dx%d)",
            self.index,
            self.width,
            self.height,
            self.requested_width,
            self.requested_height,
        )

    def lock_focus(self) -> bool:
        """Freeze focus so a focus hunt cannot smear the background reference."""
        return self._set_autofocus(False)

    def auto_focus(self) -> bool:
        return self._set_autofocus(True)

    def _set_autofocus(self, enabled: bool) -> bool:
        if self._capture is None:
            raise RuntimeError("camera is not open")
        applied = bool(self._capture.set(cv2.CAP_PROP_AUTOFOCUS, 1 if enabled else 0))
        if applied:
            logger.info("camera %d autofocus %s", self.index, "on" if enabled else "locked")
        else:
            logger.warning("camera %d does not support autofocus control", self.index)
        return applied

    def read(self) -> RawFrame:
        if self._capture is None:
            raise RuntimeError("camera is not open")
        ok, frame = self._capture.read()
        if not ok:
            raise CameraUnavailableError(f"camera {self.index} stopped delivering frames")
        return RawFrame.from_bgr(crop_to_even(frame))

    def frames(self) -> Iterator[RawFrame]:
        while True:
            yield self.read()

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> CameraSource:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
