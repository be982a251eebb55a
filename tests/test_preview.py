"""Tests for preview rendering."""

import numpy as np

from epicycle_tracer.data_pipeline import preview
from epicycle_tracer.data_pipeline.pipeline import EpicycleTrace
from epicycle_tracer.data_pipeline.spectral import Epicycle
from epicycle_tracer.utils import fs, validators


def _yellow(canvas: np.ndarray) -> np.ndarray:
    return (canvas[..., 0] > 128) & (canvas[..., 1] > 128) & (canvas[..., 2] == 0)


def test_preview_shape_and_path():
    trace = EpicycleTrace(
        points=np.array([[8.0, 0.0], [0.0, 8.0], [-8.0, 0.0], [0.0, -8.0]]),
        epicycles=(Epicycle(1, 8.0, 0.0),),
        image_size=(40, 30),
    )
    canvas = preview.render_preview(trace, validators.PreviewConfig())

    assert canvas.shape == (30, 40, 3)
    assert canvas.dtype == np.uint8
    assert _yellow(canvas).any()
    # Circle of radius 8 around the center never reaches the corners
    assert not canvas[:5, :5].any()


def test_preview_points_without_epicycles():
    trace = EpicycleTrace(points=np.array([[0.0, 0.0]]), epicycles=(), image_size=(6, 4))
    canvas = preview.render_preview(trace, validators.PreviewConfig(edge_point_radius=0))

    np.testing.assert_array_equal(canvas[2, 3], preview.POINT_COLOR)
    assert (canvas.reshape(-1, 3).any(axis=1)).sum() == 1
    assert not _yellow(canvas).any()


def test_preview_clips_points_outside_canvas():
    trace = EpicycleTrace(points=np.array([[50.0, 50.0]]), epicycles=(), image_size=(6, 4))
    canvas = preview.render_preview(trace, validators.PreviewConfig(edge_point_radius=0))
    assert not canvas.any()


def test_preview_saves_png(tmp_path):
    trace = EpicycleTrace(
        points=np.array([[1.0, 0.0]]), epicycles=(Epicycle(0, 1.0, 0.0),), image_size=(8, 8)
    )
    path = tmp_path / "preview.png"
    fs.atomic_save_image(preview.render_preview(trace, validators.PreviewConfig()), path)
    assert path.exists()
