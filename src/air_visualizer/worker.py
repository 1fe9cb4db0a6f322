from __future__ import annotations

import logging
import threading
from collections.abc import Callable

import numpy as np

from .color import RawFrame
from .controller import FlowAnalysisController, VisualizationMode

logger = logging.getLogger(__name__)

DisplayCallback = Callable[[np.ndarray], None]


class FrameMailbox:
    """Latest-only handoff of finished frames to the thread that owns the display."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame: np.ndarray | None = None

    def put(self, frame: np.ndarray) -> None:
        with self._lock:
            self._frame = frame

    def take(self) -> np.ndarray | None:
        with self._lock:
            frame, self._frame = self._frame, None
            return frame


class AnalysisWorker:
    """Runs the analysis pipeline on one dedicated thread, one frame at a time.

    Frames submitted while the previous one is still waiting or being processed
    are dropped rather than queued, so the pipeline runs at whatever rate it can
    sustain. Finished frames are handed to ``display``; it is called on the worker
    thread and must not block.
    """

    def __init__(
        self,
        controller: FlowAnalysisController,
        display: DisplayCallback | None = None,
        mode: VisualizationMode = VisualizationMode.LAMINAR,
        name: str = "air-visualizer-analysis",
    ) -> None:
        self.controller = controller
        self.display = display
        self.name = name
        self.frames_processed = 0
        self.frames_dropped = 0
        self.error: Exception | None = None

        self._mode = mode
        self._condition = threading.Condition()
        self._pending: RawFrame | None = None
        self._busy = False
        self._stop_requested = False
        self._thread: threading.Thread | None = None

    @property
    def mode(self) -> VisualizationMode:
        with self._condition:
            return self._mode

    @mode.setter
    def mode(self, mode: VisualizationMode) -> None:
        with self._condition:
            self._mode = mode

    def set_mode_if_released(self, mode: VisualizationMode) -> bool:
        """Switch mode only while capture is released; returns False when refused."""

        def assign() -> None:
            self.mode = mode

        return self.controller.run_if_released(assign)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_requested

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("worker already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("analysis worker started")

    def stop(self, timeout: float | None = 2.0) -> None:
        with self._condition:
            self._stop_requested = True
            self._condition.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info(
            "analysis worker stopped: %d processed, %d dropped",
            self.frames_processed,
            self.frames_dropped,
        )

    def submit(self, raw: RawFrame) -> bool:
        """Offer a frame; returns False when it was dropped."""
        with self._condition:
            if self._stop_requested or self._busy or self._pending is not None:
                self.frames_dropped += 1
                return False
            self._pending = raw
            self._condition.notify()
            return True

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no frame is waiting or in flight."""
        with self._condition:
            return self._condition.wait_for(
                lambda: self._stop_requested or (self._pending is None and not self._busy),
                timeout,
            )

    def _run(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._stop_requested or self._pending is not None)
                if self._stop_requested:
                    return
                raw, self._pending = self._pending, None
                mode = self._mode
                self._busy = True

            try:
                output = self.controller.process_frame(raw, mode)
            except Exception as error:
                logger.exception("frame analysis failed, tearing down the worker")
                with self._condition:
                    self.error = error
                    self._busy = False
                    self._stop_requested = True
                    self._condition.notify_all()
                return

            self._dispatch(output)
            with self._condition:
                self._busy = False
                self.frames_processed += 1
                self._condition.notify_all()

    def _dispatch(self, frame: np.ndarray) -> None:
        if self.display is None:
            return
        try:
            self.display(frame)
        except Exception:
            logger.exception("display callback failed")
