from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from .color import RawFrame, crop_to_even
from .controller import CaptureState, FlowAnalysisController, VisualizationMode
from .models import AnalyzerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoAnalysisSummary:
    """Outcome of running a recording through the analysis pipeline."""

    frames_processed: int
    fps: float
    width: int
    height: int
    capture_frame_index: int | None
    final_state: CaptureState


def to_display_bgr(frame: np.ndarray) -> np.ndarray:
    """Convert a pipeline output frame (gray or RGBA) to BGR for writers and windows."""
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    return cv2.cvtColor(frame, cv2.COLOR_RGBA2BGR)


def process_video(
    video_path: str | Path,
    output_path: str | Path | None = None,
    mode: VisualizationMode = VisualizationMode.LAMINAR,
    start_frame: int = 0,
    config: AnalyzerConfig | None = None,
    controller: FlowAnalysisController | None = None,
) -> VideoAnalysisSummary:
    """Replay a recording through the pipeline, pressing start at ``start_frame``."""
    if start_frame < 0:
        raise ValueError("start_frame must be non-negative")

    path = Path(video_path)
    if not path.exists():
        raise FileNotFoundError(path)

    capture = cv2.VideoCapture(str(path))
    if not capture.isOpened():
        raise RuntimeError(f"failed to open video: {path}")

    fps = capture.get(cv2.CAP_PROP_FPS)
    if fps <= 0:
        fps = 30.0

    analyzer = controller or FlowAnalysisController(config=config)
    writer: cv2.VideoWriter | None = None
    frame_index = 0
    capture_frame_index: int | None = None
    width = height = 0

    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                break

            frame = crop_to_even(frame)
            height, width = frame.shape[:2]
            if frame_index == start_frame:
                analyzer.start()

            output = analyzer.process_frame(RawFrame.from_bgr(frame), mode)
            if capture_frame_index is None and analyzer.state.capture_state is CaptureState.CAPTURED:
                capture_frame_index = frame_index
                logger.info("background captured at frame %d", frame_index)

            if output_path is not None:
                if writer is None:
                    writer = _open_writer(Path(output_path), fps, width, height)
                writer.write(to_display_bgr(output))
            frame_index += 1
    finally:
        capture.release()
        if writer is not None:
            writer.release()

    if frame_index == 0:
        raise RuntimeError(f"video has no readable frames: {path}")

    return VideoAnalysisSummary(
        frames_processed=frame_index,
        fps=fps,
        width=width,
        height=height,
        capture_frame_index=capture_frame_index,
        final_state=analyzer.state.capture_state,
    )


def _open_writer(path: Path, fps: float, width: int, height: int) -> cv2.VideoWriter:
    path.parent.mkdir(parents=True, exist_ok=True)
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"mp4v"), fps, (width, height))
    if not writer.isOpened():
        raise RuntimeError(f"failed to open video writer: {path}")
    return writer
