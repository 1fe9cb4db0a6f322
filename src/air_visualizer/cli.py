from __future__ import annotations

import argparse
import logging
from pathlib import Path

import cv2

from .camera import CameraSource, CameraUnavailableError
from .controller import ControlCommand, FlowAnalysisController, VisualizationMode
from .geometry import MARKER_ROLE_IDS
from .markers import generate_marker_image
from .models import AnalyzerConfig
from .synthetic import SyntheticSceneConfig, add_dye_plume, render_marker_scene
from .video import process_video, to_display_bgr
from .worker import AnalysisWorker, FrameMailbox

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
WINDOW_NAME = "air-visualizer"
MODES = tuple(mode.value for mode in VisualizationMode)


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _add_analyzer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mode", choices=MODES, default="laminar")
    parser.add_argument("--history-size", type=int, default=5)
    parser.add_argument("--capture-delay-frames", type=int, default=10)
    parser.add_argument("--redetect-interval-frames", type=int, default=20)
    parser.add_argument("--contrast-gain", type=float, default=6.0)


def _config_from_args(args: argparse.Namespace, **overrides: int) -> AnalyzerConfig:
    return AnalyzerConfig(
        history_size=args.history_size,
        capture_delay_frames=args.capture_delay_frames,
        redetect_interval_frames=args.redetect_interval_frames,
        contrast_gain=args.contrast_gain,
        **overrides,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="air-visualizer",
        description="Visualize smoke and dye flow by differencing camera frames against a background.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    live = subparsers.add_parser(
        "live",
        help="Run the pipeline on a camera feed. Keys: s start/stop, r reset, m mode, q quit.",
    )
    live.add_argument("--camera", type=int, default=0, help="OpenCV camera index.")
    live.add_argument("--width", type=int, default=1920, help="Requested capture width.")
    live.add_argument("--height", type=int, default=1080, help="Requested capture height.")
    _add_analyzer_arguments(live)

    video = subparsers.add_parser(
        "process-video",
        help="Replay a recording through the pipeline and write the visualization.",
    )
    video.add_argument("video_path", help="Path to the recording.")
    video.add_argument(
        "--output",
        help="Output video path. Default: <video_stem>_<mode>.mp4",
    )
    video.add_argument(
        "--start-frame",
        type=int,
        default=0,
        help="Frame index at which background capture is started.",
    )
    _add_analyzer_arguments(video)

    markers = subparsers.add_parser(
        "generate-markers",
        help="Write the four corner markers (ids 0-3) as printable PNGs.",
    )
    markers.add_argument("--output-dir", default=".", help="Directory for the PNG files.")
    markers.add_argument("--side-px", type=int, default=400)

    scene = subparsers.add_parser(
        "synthesize-scene",
        help="Write a synthetic marker sheet PNG for checking detection.",
    )
    scene.add_argument("--output", default="synthetic_scene.png")
    scene.add_argument("--width", type=int, default=640)
    scene.add_argument("--height", type=int, default=480)
    scene.add_argument("--marker-side-px", type=int, default=80)
    scene.add_argument("--plume", action="store_true", help="Add a dye plume in the centre.")

    return parser


def _handle_live(args: argparse.Namespace) -> int:
    config = _config_from_args(args, target_width=args.width, target_height=args.height)
    controller = FlowAnalysisController(config=config)
    mailbox = FrameMailbox()
    worker = AnalysisWorker(controller, display=mailbox.put, mode=VisualizationMode(args.mode))
    camera = CameraSource(args.camera, config.target_width, config.target_height)

    try:
        camera.open()
    except CameraUnavailableError as error:
        logger.error("camera binding failed: %s", error)
        return 1

    worker.start()
    exit_code = 0
    try:
        while worker.is_running:
            worker.submit(camera.read())
            frame = mailbox.take()
            if frame is not None:
                cv2.imshow(WINDOW_NAME, to_display_bgr(frame))

            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break
            if key == ord("s"):
                _toggle_capture(controller, camera)
            elif key == ord("r"):
                controller.reset_background()
            elif key == ord("m"):
                _toggle_mode(worker)
    except CameraUnavailableError as error:
        logger.error("camera stopped: %s", error)
        exit_code = 1
    finally:
        worker.stop()
        camera.close()
        cv2.destroyAllWindows()

    if worker.error is not None:
        return 1
    return exit_code


def _toggle_capture(controller: FlowAnalysisController, camera: CameraSource) -> None:
    # Focus stays fixed for as long as a background reference may be in use.
    if controller.toggle() is ControlCommand.START:
        camera.lock_focus()
    else:
        camera.auto_focus()


def _toggle_mode(worker: AnalysisWorker) -> None:
    if worker.mode is VisualizationMode.LAMINAR:
        target = VisualizationMode.TURBULENT
    else:
        target = VisualizationMode.LAMINAR
    if not worker.set_mode_if_released(target):
        logger.warning("stop capture before switching visualization mode")
        return
    print(f"Visualization mode: {worker.mode.value}")


def _handle_process_video(args: argparse.Namespace) -> int:
    video_path = Path(args.video_path)
    if not video_path.exists():
        raise FileNotFoundError(video_path)

    output_path = Path(args.output) if args.output else video_path.with_name(
        f"{video_path.stem}_{args.mode}.mp4"
    )
    summary = process_video(
        video_path,
        output_path=output_path,
        mode=VisualizationMode(args.mode),
        start_frame=args.start_frame,
        config=_config_from_args(args),
    )

    print(f"Video analyzed: {video_path}")
    print(f"Output video: {output_path}")
    print(f"Frames: {summary.frames_processed} at {summary.fps:.1f} fps")
    print(f"Resolution: {summary.width}x{summary.height}")
    if summary.capture_frame_index is None:
        print("Background: not captured")
    else:
        print(f"Background captured at frame {summary.capture_frame_index}")
    print(f"Final state: {summary.final_state.value}")
    return 0


def _handle_generate_markers(args: argparse.Namespace) -> int:
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    for role, marker_id in MARKER_ROLE_IDS.items():
        path = output_dir / f"marker_{marker_id}_{role.value}.png"
        if not cv2.imwrite(str(path), generate_marker_image(marker_id, args.side_px)):
            raise RuntimeError(f"failed to write {path}")
        print(f"Marker {marker_id} ({role.value}): {path}")
    return 0


def _handle_synthesize_scene(args: argparse.Namespace) -> int:
    config = SyntheticSceneConfig(
        width=args.width,
        height=args.height,
        marker_side_px=args.marker_side_px,
    )
    scene = render_marker_scene(config)
    if args.plume:
        scene = add_dye_plume(scene, (config.width / 2, config.height / 2), config.width / 12)

    output = Path(args.output)
    if not cv2.imwrite(str(output), scene):
        raise RuntimeError(f"failed to write {output}")
    print(f"Synthetic scene: {output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command == "live":
        return _handle_live(args)
    if args.command == "process-video":
        return _handle_process_video(args)
    if args.command == "generate-markers":
        return _handle_generate_markers(args)
    if args.command == "synthesize-scene":
        return _handle_synthesize_scene(args)

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
