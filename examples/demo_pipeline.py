import numpy as np

from air_visualizer.color import RawFrame
from air_visualizer.controller import FlowAnalysisController, VisualizationMode
from air_visualizer.synthetic import SyntheticSceneConfig, gray_to_bgr, plume_sequence


def main() -> None:
    config = SyntheticSceneConfig()
    frames = plume_sequence(config, frames=30, start=(180.0, 240.0), velocity_px=(8.0, 0.0))

    controller = FlowAnalysisController()
    controller.start()

    print("Laminar flow demo")
    for index, gray in enumerate(frames):
        output = controller.process_frame(RawFrame.from_bgr(gray_to_bgr(gray)), VisualizationMode.LAMINAR)
        state = controller.state.capture_state.value
        lit = int(np.count_nonzero(output > 128)) if output.ndim == 2 else 0
        print(f"Frame {index:2d}: state={state:<9} emphasized_px={lit}")


if __name__ == "__main__":
    main()
