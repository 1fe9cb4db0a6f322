from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from air_visualizer.controller import CaptureState, VisualizationMode
from air_visualizer.models import AnalyzerConfig
from air_visualizer.synthetic import SyntheticSceneConfig, gray_to_bgr, plume_sequence
from air_visualizer.video import process_video, to_display_bgr


def _write_video(path: Path, frames: list[np.ndarray], fps: float = 10.0) -> Path:
    height, width = frames[0].shape[:2]
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, (width, height))
    assert writer.isOpened()
    for frame in frames:
        writer.write(gray_to_bgr(frame))
    writer.release()
    return path


@pytest.fixture
def plume_video(tmp_path: Path) -> Path:
    frames = plume_sequence(
        SyntheticSceneConfig(),
        frames=16,
        start=(200.0, 240.0),
        velocity_px=(10.0, 0.0),
    )
    return _write_video(tmp_path / "plume.avi", frames)


def test_laminar_video_captures_background_after_delay(plume_video: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "laminar.mp4"

    summary = process_video(plume_video, output_path=output, mode=VisualizationMode.LAMINAR)

    assert summary.frames_processed == 16
    assert summary.width == 640
    assert summary.height == 480
    assert summary.fps == pytest.approx(10.0)
    assert summary.capture_frame_index == 9
    assert summary.final_state is CaptureState.CAPTURED
    assert output.exists()
    assert output.stat().st_size > 0


def test_turbulent_video_captures_on_start_frame(plume_video: Path) -> None:
    summary = process_video(plume_video, mode=VisualizationMode.TURBULENT, start_frame=3)

    assert summary.capture_frame_index == 3
    assert summary.final_state is CaptureState.CAPTURED


def test_start_frame_past_the_end_never_captures(plume_video: Path) -> None:
    summary = process_video(plume_video, mode=VisualizationMode.TURBULENT, start_frame=100)

    assert summary.capture_frame_index is None
    assert summary.final_state is CaptureState.RELEASED


def test_custom_config_reaches_the_controller(plume_video: Path) -> None:
    summary = process_video(
        plume_video,
        mode=VisualizationMode.LAMINAR,
        config=AnalyzerConfig(capture_delay_frames=3),
    )

    assert summary.capture_frame_index == 2


def test_missing_video_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        process_video(tmp_path / "missing.avi")


def test_negative_start_frame_raises(plume_video: Path) -> None:
    with pytest.raises(ValueError, match="start_frame"):
        process_video(plume_video, start_frame=-1)


def test_unreadable_video_raises(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.avi"
    bogus.write_bytes(b"not a video")

    with pytest.raises(RuntimeError):
        process_video(bogus)


def test_display_conversion_handles_gray_and_rgba() -> None:
    gray = np.full((4, 6), 90, dtype=np.uint8)
    rgba = np.zeros((4, 6, 4), dtype=np.uint8)
    rgba[..., 0] = 255
    rgba[..., 3] = 255

    assert to_display_bgr(gray).shape == (4, 6, 3)
    assert tuple(to_display_bgr(gray)[0, 0]) == (90, 90, 90)
    assert tuple(to_display_bgr(rgba)[0, 0]) == (0, 0, 255)
