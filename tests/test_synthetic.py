from __future__ import annotations

import numpy as np
import pytest

from air_visualizer.geometry import MarkerRole
from air_visualizer.synthetic import (
    SyntheticSceneConfig,
    add_dye_plume,
    marker_origins,
    plume_sequence,
    render_marker_scene,
)


def test_marker_origins_sit_in_the_scene_corners() -> None:
    config = SyntheticSceneConfig(width=400, height=300, marker_side_px=50, margin_px=20)

    origins = marker_origins(config)

    assert origins[MarkerRole.TOP_LEFT] == (20, 20)
    assert origins[MarkerRole.BOTTOM_RIGHT] == (330, 230)


def test_render_leaves_out_missing_roles() -> None:
    config = SyntheticSceneConfig()
    x, y = marker_origins(config)[MarkerRole.TOP_RIGHT]
    side = config.marker_side_px

    full = render_marker_scene(config)
    partial = render_marker_scene(config, missing_roles=[MarkerRole.TOP_RIGHT])

    assert full[y : y + side, x : x + side].min() == 0
    assert np.all(partial[y : y + side, x : x + side] == config.paper_level)


def test_dye_plume_darkens_around_its_centre() -> None:
    paper = np.full((100, 100), 200, dtype=np.uint8)

    plume = add_dye_plume(paper, (50.0, 50.0), radius_px=10.0, intensity=-100.0)

    assert plume[50, 50] == 100
    assert plume[0, 0] == 200
    assert paper[50, 50] == 200


def test_plume_sequence_moves_the_plume() -> None:
    frames = plume_sequence(
        SyntheticSceneConfig(), frames=3, start=(200.0, 240.0), velocity_px=(40.0, 0.0)
    )

    assert len(frames) == 3
    assert frames[0][240, 200] < frames[2][240, 200]


def test_scene_config_rejects_odd_sizes() -> None:
    with pytest.raises(ValueError):
        SyntheticSceneConfig(width=641)
