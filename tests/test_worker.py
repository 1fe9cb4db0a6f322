from __future__ import annotations

import logging
import threading

import numpy as np
import pytest

from air_visualizer.color import RawFrame
from air_visualizer.controller import CaptureState, FlowAnalysisController, VisualizationMode
from air_visualizer.geometry import QuadMarkers
from air_visualizer.synthetic import gray_to_bgr
from air_visualizer.worker import AnalysisWorker, FrameMailbox


class NoMarkers:
    def detect(self, gray: np.ndarray) -> QuadMarkers | None:
        return None


class BlockingDetector:
    """Holds the worker inside ``detect`` until released."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def detect(self, gray: np.ndarray) -> QuadMarkers | None:
        self.entered.set()
        self.release.wait(5.0)
        return None


class BrokenDetector:
    def detect(self, gray: np.ndarray) -> QuadMarkers | None:
        raise RuntimeError("detector exploded")


def _raw(level: int = 100) -> RawFrame:
    return RawFrame.from_bgr(gray_to_bgr(np.full((48, 64), level, dtype=np.uint8)))


def test_worker_processes_submitted_frames_and_displays_them() -> None:
    shown: list[np.ndarray] = []
    controller = FlowAnalysisController(detector=NoMarkers())
    worker = AnalysisWorker(controller, display=shown.append, mode=VisualizationMode.TURBULENT)

    worker.start()
    try:
        controller.start()
        for level in (80, 120):
            assert worker.submit(_raw(level))
            assert worker.wait_idle(timeout=5.0)
    finally:
        worker.stop()

    assert worker.frames_processed == 2
    assert worker.frames_dropped == 0
    assert len(shown) == 2
    assert shown[0].shape == (48, 64, 4)
    assert shown[1].shape == (48, 64)
    assert controller.snapshot().capture_state is CaptureState.CAPTURED
    assert not worker.is_running


def test_frames_are_dropped_while_the_worker_is_busy() -> None:
    detector = BlockingDetector()
    worker = AnalysisWorker(FlowAnalysisController(detector=detector))

    worker.start()
    try:
        assert worker.submit(_raw())
        assert detector.entered.wait(5.0)
        assert worker.submit(_raw()) is False
        assert worker.submit(_raw()) is False
        detector.release.set()
        assert worker.wait_idle(timeout=5.0)
        assert worker.submit(_raw())
        assert worker.wait_idle(timeout=5.0)
    finally:
        detector.release.set()
        worker.stop()

    assert worker.frames_processed == 2
    assert worker.frames_dropped == 2


def test_analysis_failure_tears_down_the_worker(caplog: pytest.LogCaptureFixture) -> None:
    worker = AnalysisWorker(FlowAnalysisController(detector=BrokenDetector()))

    with caplog.at_level(logging.ERROR, logger="air_visualizer.worker"):
        worker.start()
        assert worker.submit(_raw())
        assert worker.wait_idle(timeout=5.0)
        worker.stop()

    assert isinstance(worker.error, RuntimeError)
    assert not worker.is_running
    assert worker.submit(_raw()) is False
    assert "frame analysis failed" in caplog.text


def test_display_errors_are_logged_and_do_not_stop_the_worker(
    caplog: pytest.LogCaptureFixture,
) -> None:
    def bad_display(frame: np.ndarray) -> None:
        raise ValueError("window closed")

    worker = AnalysisWorker(
        FlowAnalysisController(detector=NoMarkers()),
        display=bad_display,
        mode=VisualizationMode.TURBULENT,
    )

    with caplog.at_level(logging.ERROR, logger="air_visualizer.worker"):
        worker.start()
        try:
            assert worker.submit(_raw())
            assert worker.wait_idle(timeout=5.0)
            assert worker.is_running
        finally:
            worker.stop()

    assert worker.error is None
    assert worker.frames_processed == 1
    assert "display callback failed" in caplog.text


def test_worker_cannot_be_started_twice() -> None:
    worker = AnalysisWorker(FlowAnalysisController(detector=NoMarkers()))
    worker.start()
    try:
        with pytest.raises(RuntimeError):
            worker.start()
    finally:
        worker.stop()


def test_submit_before_start_is_accepted_then_processed() -> None:
    worker = AnalysisWorker(FlowAnalysisController(detector=NoMarkers()))

    assert worker.submit(_raw())
    assert worker.submit(_raw()) is False
    worker.start()
    try:
        assert worker.wait_idle(timeout=5.0)
    finally:
        worker.stop()

    assert worker.frames_processed == 1


def test_mode_can_be_switched_from_another_thread() -> None:
    worker = AnalysisWorker(FlowAnalysisController(detector=NoMarkers()))

    switcher = threading.Thread(target=setattr, args=(worker, "mode", VisualizationMode.TURBULENT))
    switcher.start()
    switcher.join()

    assert worker.mode is VisualizationMode.TURBULENT


def test_mailbox_keeps_only_the_latest_frame() -> None:
    mailbox = FrameMailbox()
    assert mailbox.take() is None

    mailbox.put(np.zeros((2, 2), dtype=np.uint8))
    mailbox.put(np.ones((2, 2), dtype=np.uint8))

    latest = mailbox.take()
    assert latest is not None
    assert latest.max() == 1
    assert mailbox.take() is None


def test_mode_switch_is_refused_once_capture_is_requested() -> None:
    worker = AnalysisWorker(FlowAnalysisController(detector=NoMarkers()))

    assert worker.set_mode_if_released(VisualizationMode.TURBULENT) is True
    worker.controller.start()
    assert worker.set_mode_if_released(VisualizationMode.LAMINAR) is False

    assert worker.mode is VisualizationMode.TURBULENT
