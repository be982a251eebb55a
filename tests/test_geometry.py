"""Test point-set helpers.

Tests for epicycle_tracer.utils.geometry:
    - Centered coordinates in raster order
    - Point validation
    - Complex conversion
    - Polyline length and jump detection
"""

import numpy as np
import pytest

from epicycle_tracer.utils import geometry


def test_centered_points_raster_order():
    mask = np.zeros((4, 6), dtype=bool)
    mask[3, 0] = True
    mask[1, 5] = True
    mask[1, 2] = True

    pts = geometry.centered_points(mask)

    np.testing.assert_array_equal(pts, [[-1.0, -1.0], [2.0, -1.0], [-3.0, 1.0]])
    assert pts.dtype == np.float64


def test_centered_points_odd_size():
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True
    np.testing.assert_array_equal(geometry.centered_points(mask), [[-0.5, -0.5]])


def test_centered_points_empty():
    assert geometry.centered_points(np.zeros((5, 5), dtype=bool)).shape == (0, 2)


def test_as_points():
    pts = geometry.as_points([[1, 2], [3, 4]])
    assert pts.dtype == np.float64
    assert geometry.as_points([]).shape == (0, 2)


@pytest.mark.parametrize("bad", [[1.0, 2.0, 3.0], [[1.0, 2.0, 3.0]], [[np.inf, 0.0]]])
def test_as_points_rejects(bad):
    with pytest.raises(ValueError):
        geometry.as_points(bad)


def test_complex_roundtrip():
    pts = np.array([[1.0, -2.0], [0.5, 3.0]])
    z = geometry.to_complex(pts)
    np.testing.assert_array_equal(z, [1 - 2j, 0.5 + 3j])
    np.testing.assert_array_equal(geometry.from_complex(z), pts)


def test_squared_distances():
    pts = np.array([[0.0, 0.0], [3.0, 4.0], [1.0, 1.0]])
    np.testing.assert_array_equal(
        geometry.squared_distances(pts, np.array([0.0, 0.0])), [0.0, 25.0, 2.0]
    )


def test_polyline_length():
    square = np.array([[0.0, 0.0], [2.0, 0.0], [2.0, 2.0], [0.0, 2.0]])
    assert geometry.polyline_length(square) == pytest.approx(6.0)
    assert geometry.polyline_length(square, closed=True) == pytest.approx(8.0)
    assert geometry.polyline_length(square[:1]) == 0.0


def test_find_jumps():
    path = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 1.0], [9.0, 1.0], [10.0, 2.0]])
    np.testing.assert_array_equal(geometry.find_jumps(path), [2])
    assert geometry.find_jumps(path[:1]).size == 0
