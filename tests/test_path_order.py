"""Tests for greedy nearest-neighbor path ordering.

Tests for epicycle_tracer.data_pipeline.path_order:
    - Output is a permutation starting at the first input point
    - Lowest-index tie-break on equal distances
    - k-d tree strategy reproduces the brute-force order exactly
    - Strategy factory and input validation
"""

import numpy as np
import pytest

from epicycle_tracer.data_pipeline import path_order
from epicycle_tracer.data_pipeline.path_order import (
    GreedyNearestNeighbor,
    KDTreeNearestNeighbor,
)
from epicycle_tracer.utils import geometry, validators


STRATEGIES = [
    GreedyNearestNeighbor(),
    KDTreeNearestNeighbor(initial_k=1),
    KDTreeNearestNeighbor(initial_k=16),
]


def _skeleton_like_points(seed: int, shape=(30, 30), density=0.3) -> np.ndarray:
    """Integer grid points in raster order (many equal distances)."""
    rng = np.random.default_rng(seed)
    return geometry.centered_points(rng.random(shape) < density)


@pytest.mark.parametrize("orderer", STRATEGIES, ids=lambda o: f"{o.name}")
def test_empty_input(orderer):
    assert orderer.order_indices(np.zeros((0, 2))).shape == (0,)
    assert orderer.order(np.zeros((0, 2))).shape == (0, 2)


@pytest.mark.parametrize("orderer", STRATEGIES, ids=lambda o: f"{o.name}")
def test_single_point(orderer):
    np.testing.assert_array_equal(orderer.order_indices([[3.0, -2.0]]), [0])
    np.testing.assert_array_equal(orderer.order([[3.0, -2.0]]), [[3.0, -2.0]])


@pytest.mark.parametrize("orderer", STRATEGIES, ids=lambda o: f"{o.name}")
def test_permutation_starting_at_first_point(orderer):
    pts = _skeleton_like_points(0)
    idx = orderer.order_indices(pts)
    assert idx[0] == 0
    assert sorted(idx.tolist()) == list(range(len(pts)))


def test_collinear_points_visited_in_sequence():
    rng = np.random.default_rng(42)
    xs = np.concatenate([[0], rng.permutation(np.arange(1, 10))])
    pts = np.column_stack([xs, np.zeros(10)]).astype(float)

    ordered = path_order.order_points(pts)

    np.testing.assert_array_equal(ordered[:, 0], np.arange(10))


def test_greedy_steps_to_nearest_not_input_order():
    pts = np.array([[0.0, 0.0], [10.0, 0.0], [1.0, 0.0], [11.0, 0.0]])
    np.testing.assert_array_equal(
        GreedyNearestNeighbor().order_indices(pts), [0, 2, 1, 3]
    )


@pytest.mark.parametrize("orderer", STRATEGIES, ids=lambda o: f"{o.name}")
def test_ties_go_to_lowest_index(orderer):
    # (0,1), (1,0), (-1,0) are all at distance 1 from the start
    pts = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [-1.0, 0.0]])
    np.testing.assert_array_equal(orderer.order_indices(pts), [0, 1, 2, 3])


@pytest.mark.parametrize("orderer", STRATEGIES, ids=lambda o: f"{o.name}")
def test_square_keeps_rotational_order(orderer):
    pts = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]])
    np.testing.assert_array_equal(orderer.order_indices(pts), [0, 1, 2, 3])


def test_deterministic():
    pts = _skeleton_like_points(1)
    first = GreedyNearestNeighbor().order_indices(pts)
    second = GreedyNearestNeighbor().order_indices(pts)
    np.testing.assert_array_equal(first, second)


@pytest.mark.parametrize("seed", [0, 1, 2])
@pytest.mark.parametrize("initial_k", [1, 4, 16])
def test_kdtree_matches_greedy(seed, initial_k):
    pts = _skeleton_like_points(seed)
    np.testing.assert_array_equal(
        KDTreeNearestNeighbor(initial_k=initial_k).order_indices(pts),
        GreedyNearestNeighbor().order_indices(pts),
    )


def test_kdtree_matches_greedy_on_float_points():
    rng = np.random.default_rng(9)
    pts = rng.normal(size=(200, 2)) * 20.0
    np.testing.assert_array_equal(
        KDTreeNearestNeighbor(initial_k=2).order_indices(pts),
        GreedyNearestNeighbor().order_indices(pts),
    )


def test_kdtree_rejects_bad_k():
    with pytest.raises(ValueError, match="initial_k"):
        KDTreeNearestNeighbor(initial_k=0)


@pytest.mark.parametrize("bad", [np.zeros((3, 3)), np.zeros(4), [[0.0, np.nan]]])
def test_invalid_points_rejected(bad):
    with pytest.raises(ValueError):
        GreedyNearestNeighbor().order(bad)


def test_make_orderer():
    greedy = path_order.make_orderer(validators.OrderingConfig())
    assert isinstance(greedy, GreedyNearestNeighbor)

    kd = path_order.make_orderer(
        validators.OrderingConfig(strategy="kdtree", kdtree_initial_k=4)
    )
    assert isinstance(kd, KDTreeNearestNeighbor)
    assert kd.initial_k == 4
