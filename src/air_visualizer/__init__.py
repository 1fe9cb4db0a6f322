"""Camera-based smoke and dye flow visualization by background differencing."""

from .camera import CameraSource, CameraUnavailableError
from .color import RawFrame, crop_to_even, rgba_to_gray, yuv_to_rgba
from .controller import (
    CaptureState,
    ControlCommand,
    ControllerSnapshot,
    ControllerState,
    FlowAnalysisController,
    VisualizationMode,
    analyze_frame,
    apply_command,
)
from .difference import DEFAULT_CONTRAST_GAIN, abs_diff, emphasize_contrast
from .geometry import MARKER_ROLE_IDS, Marker, MarkerRole, Point2D, QuadMarkers
from .markers import MarkerDetector, generate_marker_image
from .models import AnalyzerConfig
from .overlay import draw_marker_area
from .rectify import compute_homography, rectify_region, warp
from .smoothing import MarkerSmoother
from .synthetic import (
    SyntheticSceneConfig,
    add_dye_plume,
    expected_region_corners,
    plume_sequence,
    render_marker_scene,
)
from .video import VideoAnalysisSummary, process_video
from .worker import AnalysisWorker, FrameMailbox

__all__ = [
    "AnalyzerConfig",
    "RawFrame",
    "crop_to_even",
    "yuv_to_rgba",
    "rgba_to_gray",
    "Point2D",
    "Marker",
    "MarkerRole",
    "MARKER_ROLE_IDS",
    "QuadMarkers",
    "MarkerDetector",
    "generate_marker_image",
    "MarkerSmoother",
    "compute_homography",
    "warp",
    "rectify_region",
    "DEFAULT_CONTRAST_GAIN",
    "abs_diff",
    "emphasize_contrast",
    "draw_marker_area",
    "CaptureState",
    "VisualizationMode",
    "ControlCommand",
    "ControllerState",
    "ControllerSnapshot",
    "FlowAnalysisController",
    "analyze_frame",
    "apply_command",
    "AnalysisWorker",
    "FrameMailbox",
    "CameraSource",
    "CameraUnavailableError",
    "VideoAnalysisSummary",
    "process_video",
    "SyntheticSceneConfig",
    "render_marker_scene",
    "expected_region_corners",
    "add_dye_plume",
    "plume_sequence",
]

try:
    from .control_api import create_control_app  # noqa: F401
except ModuleNotFoundError:
    # The HTTP control surface (fastapi/pydantic) is optional.
    pass
else:
    __all__.append("create_control_app")
