from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

import numpy as np

from .color import RawFrame, rgba_to_gray, yuv_to_rgba
from .difference import abs_diff, emphasize_contrast
from .geometry import QuadMarkers
from .markers import MarkerDetector
from .models import AnalyzerConfig
from .overlay import draw_marker_area
from .rectify import rectify_region
from .smoothing import MarkerSmoother

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    RELEASED = "released"
    CAPTURING = "capturing"
    CAPTURED = "captured"


class VisualizationMode(Enum):
    LAMINAR = "laminar"
    TURBULENT = "turbulent"


class ControlCommand(Enum):
    START = "start"
    STOP = "stop"
    RESET_BACKGROUND = "reset_background"


class QuadDetector(Protocol):
    def detect(self, gray: np.ndarray) -> QuadMarkers | None: ...


@dataclass
class ControllerState:
    """Mutable per-session pipeline state, owned by the single analysis worker."""

    smoother: MarkerSmoother
    capture_state: CaptureState = CaptureState.RELEASED
    mode: VisualizationMode | None = None
    background: np.ndarray | None = None
    capture_delay_count: int = 0
    detection_loop_count: int = 0
    frames_processed: int = 0

    def enter(self, capture_state: CaptureState) -> None:
        if capture_state is not self.capture_state:
            logger.info(
                "capture state %s -> %s", self.capture_state.value, capture_state.value
            )
        self.capture_state = capture_state
        if capture_state is CaptureState.CAPTURED:
            self.detection_loop_count = 0
        else:
            self.background = None
            self.capture_delay_count = 0


@dataclass(frozen=True)
class ControllerSnapshot:
    """Point-in-time view of the controller, safe to read from any thread."""

    capture_state: CaptureState
    mode: VisualizationMode | None
    history_size: int
    has_background: bool
    frames_processed: int
    pending_commands: int = 0


def apply_command(state: ControllerState, command: ControlCommand) -> bool:
    """Apply a user command to ``state``; returns False when it does not apply."""
    current = state.capture_state
    if command is ControlCommand.START and current is CaptureState.RELEASED:
        state.enter(CaptureState.CAPTURING)
        return True
    if command is ControlCommand.STOP and current is not CaptureState.RELEASED:
        state.enter(CaptureState.RELEASED)
        return True
    if command is ControlCommand.RESET_BACKGROUND and current is CaptureState.CAPTURED:
        state.enter(CaptureState.CAPTURING)
        return True

    logger.debug("ignoring %s in state %s", command.value, current.value)
    return False


def _switch_mode(state: ControllerState, mode: VisualizationMode) -> None:
    if state.mode is not None and state.mode is not mode:
        logger.info("visualization mode %s -> %s", state.mode.value, mode.value)
        state.smoother.clear()
        if state.capture_state is CaptureState.CAPTURED:
            state.enter(CaptureState.CAPTURING)
        else:
            state.enter(state.capture_state)
    state.mode = mode


def _rectified_or_plain(gray: np.ndarray, smoother: MarkerSmoother) -> np.ndarray:
    if smoother.is_empty():
        return gray
    return rectify_region(gray, smoother.average())


def _analyze_laminar(
    state: ControllerState,
    rgba: np.ndarray,
    gray: np.ndarray,
    detector: QuadDetector,
    config: AnalyzerConfig,
) -> np.ndarray:
    if state.capture_state is CaptureState.RELEASED:
        quad = detector.detect(gray)
        if quad is None:
            return rgba
        state.smoother.push(quad)
        return draw_marker_area(
            rgba,
            quad,
            color=config.overlay_color,
            radius_px=config.overlay_radius_px,
            thickness_px=config.overlay_thickness_px,
        )

    if state.capture_state is CaptureState.CAPTURING:
        quad = detector.detect(gray)
        if quad is None:
            state.capture_delay_count = 0
        else:
            state.smoother.push(quad)
            state.capture_delay_count += 1
            # Wait out camera shake from the button press before freezing the background.
            if state.capture_delay_count >= config.capture_delay_frames:
                background = rectify_region(gray, state.smoother.average())
                state.enter(CaptureState.CAPTURED)
                state.background = background
                return background.copy()
        return _rectified_or_plain(gray, state.smoother)

    state.detection_loop_count += 1
    if state.detection_loop_count >= config.redetect_interval_frames:
        quad = detector.detect(gray)
        if quad is not None:
            state.smoother.push(quad)
        state.detection_loop_count = 0

    region = _rectified_or_plain(gray, state.smoother)
    return emphasize_contrast(abs_diff(region, state.background), config.contrast_gain)


def _analyze_turbulent(
    state: ControllerState,
    rgba: np.ndarray,
    gray: np.ndarray,
    config: AnalyzerConfig,
) -> np.ndarray:
    if state.capture_state is CaptureState.RELEASED:
        return rgba

    if state.capture_state is CaptureState.CAPTURING:
        state.enter(CaptureState.CAPTURED)
        state.background = gray
        return rgba

    # Rolling reference: each frame is differenced against the one before it.
    contrast = emphasize_contrast(abs_diff(gray, state.background), config.contrast_gain)
    state.background = gray
    return contrast


def analyze_frame(
    state: ControllerState,
    rgba: np.ndarray,
    gray: np.ndarray,
    mode: VisualizationMode,
    detector: QuadDetector,
    config: AnalyzerConfig,
) -> np.ndarray:
    """Run one frame through the pipeline selected by ``(mode, state.capture_state)``."""
    _switch_mode(state, mode)
    state.frames_processed += 1
    if mode is VisualizationMode.LAMINAR:
        return _analyze_laminar(state, rgba, gray, detector, config)
    return _analyze_turbulent(state, rgba, gray, config)


class FlowAnalysisController:
    """Per-frame flow visualization with a start/stop/reset background capture protocol.

    ``process_frame`` must only ever be called from one thread at a time. The
    control methods (``start``, ``stop``, ``reset_background``) may be called from
    any thread; they are queued under a lock and applied at the start of the next
    frame, so a transition is never observed mid-frame.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        detector: QuadDetector | None = None,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.detector = detector or MarkerDetector()
        self._state = ControllerState(smoother=MarkerSmoother(self.config.history_size))
        self._lock = threading.Lock()
        self._pending: list[ControlCommand] = []
        self._snapshot = self._take_snapshot()

    @property
    def state(self) -> ControllerState:
        return self._state

    def start(self) -> None:
        self._publish(ControlCommand.START)

    def stop(self) -> None:
        self._publish(ControlCommand.STOP)

    def reset_background(self) -> None:
        self._publish(ControlCommand.RESET_BACKGROUND)

    def toggle(self) -> ControlCommand:
        """Start when released, stop otherwise, judged on the last processed frame."""
        with self._lock:
            released = self._snapshot.capture_state is CaptureState.RELEASED
            if self._pending:
                released = self._pending[-1] is ControlCommand.STOP
            command = ControlCommand.START if released else ControlCommand.STOP
            self._pending.append(command)
        return command

    def run_if_released(self, action: Callable[[], None]) -> bool:
        """Run ``action`` while holding the command lock, only if released with nothing queued.

        No command can be published while ``action`` runs.
        """
        with self._lock:
            if self._snapshot.capture_state is not CaptureState.RELEASED or self._pending:
                return False
            action()
            return True

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            return replace(self._snapshot, pending_commands=len(self._pending))

    def process_frame(self, raw: RawFrame, mode: VisualizationMode) -> np.ndarray:
        return self.process_rgba(yuv_to_rgba(raw), mode)

    def process_rgba(self, rgba: np.ndarray, mode: VisualizationMode) -> np.ndarray:
        with self._lock:
            commands, self._pending = self._pending, []
        for command in commands:
            apply_command(self._state, command)

        output = analyze_frame(
            self._state, rgba, rgba_to_gray(rgba), mode, self.detector, self.config
        )

        snapshot = self._take_snapshot()
        with self._lock:
            self._snapshot = snapshot
        return output

    def _publish(self, command: ControlCommand) -> None:
        with self._lock:
            self._pending.append(command)
        logger.debug("queued %s", command.value)

    def _take_snapshot(self) -> ControllerSnapshot:
        state = self._state
        return ControllerSnapshot(
            capture_state=state.capture_state,
            mode=state.mode,
            history_size=len(state.smoother),
            has_background=state.background is not None,
            frames_processed=state.frames_processed,
        )
