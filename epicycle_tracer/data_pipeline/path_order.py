"""Greedy nearest-neighbor ordering of skeleton points into one stroke.

Starting from the first point in raster-scan order, repeatedly step to the
closest point not yet visited (squared Euclidean distance). Ties go to the
point with the lowest input index, so the output is fully determined by the
input order.

The result is a permutation of the input: no point is dropped or repeated.
It is NOT a shortest tour; where the skeleton has several branches the
path jumps across the gap between them.

Strategies (same output, different cost):
    - GreedyNearestNeighbor: brute-force scan, O(n²)
    - KDTreeNearestNeighbor: scipy cKDTree with expanding k-nearest queries,
      fast while unvisited points remain close by

Usage:
    orderer = make_orderer(cfg.ordering)
    path = orderer.order(points)
"""

import logging
from typing import Dict, Protocol, Type

import numpy as np
from scipy.spatial import cKDTree

from ..utils import geometry, validators

logger = logging.getLogger(__name__)


class PathOrderingStrategy(Protocol):
    """Interface for turning an unordered point set into a traversal."""

    def order_indices(self, points: np.ndarray) -> np.ndarray:
        """Visit order as indices into points, shape (N,)."""
        ...

    def order(self, points: np.ndarray) -> np.ndarray:
        """Points rearranged into visit order, shape (N, 2)."""
        ...


class _OrdererBase:
    name = "base"

    def order_indices(self, points: np.ndarray) -> np.ndarray:
        pts = geometry.as_points(points)
        n = len(pts)
        if n == 0:
            return np.zeros(0, dtype=np.intp)

        visit = self._visit(pts)
        logger.debug(f"{self.name} ordering of {n} points done")
        return visit

    def order(self, points: np.ndarray) -> np.ndarray:
        pts = geometry.as_points(points)
        return pts[self.order_indices(pts)]

    def _visit(self, pts: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class GreedyNearestNeighbor(_OrdererBase):
    """Brute-force greedy ordering: every step scans all unvisited points."""

    name = "greedy"

    def _visit(self, pts: np.ndarray) -> np.ndarray:
        n = len(pts)
        visited = np.zeros(n, dtype=bool)
        visit = np.empty(n, dtype=np.intp)

        current = 0
        visited[0] = True
        visit[0] = 0

        for i in range(1, n):
            d = geometry.squared_distances(pts, pts[current])
            d[visited] = np.inf
            # argmin returns the first minimum, i.e. the lowest index on ties
            current = int(np.argmin(d))
            visited[current] = True
            visit[i] = current

        return visit


class KDTreeNearestNeighbor(_OrdererBase):
    """Greedy ordering accelerated with a k-d tree.

    Each step queries the k nearest points and doubles k until the query
    contains an unvisited point AND the farthest returned point lies
    strictly beyond the best candidate, which guarantees no unseen point
    ties with or beats it. Produces exactly the GreedyNearestNeighbor order.

    Parameters
    ----------
    initial_k : int
        Neighbors requested per step before any doubling, default 16
    """

    name = "kdtree"

    def __init__(self, initial_k: int = 16):
        if initial_k < 1:
            raise ValueError(f"initial_k must be >= 1, got {initial_k}")
        self.initial_k = initial_k

    def _visit(self, pts: np.ndarray) -> np.ndarray:
        n = len(pts)
        tree = cKDTree(pts)
        visited = np.zeros(n, dtype=bool)
        visit = np.empty(n, dtype=np.intp)

        current = 0
        visited[0] = True
        visit[0] = 0

        for i in range(1, n):
            current = self._nearest_unvisited(tree, pts, visited, current)
            visited[current] = True
            visit[i] = current

        return visit

    def _nearest_unvisited(
        self,
        tree: cKDTree,
        pts: np.ndarray,
        visited: np.ndarray,
        current: int
    ) -> int:
        n = len(pts)
        k = min(self.initial_k, n)
        origin = pts[current]

        while True:
            _, idx = tree.query(origin, k=k)
            idx = np.atleast_1d(idx)
            d = geometry.squared_distances(pts[idx], origin)
            unvisited = ~visited[idx]

            if unvisited.any():
                best = d[unvisited].min()
                if k >= n or d.max() > best:
                    ties = idx[unvisited & (d == best)]
                    return int(ties.min())

            k = min(2 * k, n)


_STRATEGIES: Dict[str, Type[_OrdererBase]] = {
    GreedyNearestNeighbor.name: GreedyNearestNeighbor,
    KDTreeNearestNeighbor.name: KDTreeNearestNeighbor,
}


def make_orderer(cfg: validators.OrderingConfig) -> PathOrderingStrategy:
    """Build the configured ordering strategy.

    Raises
    ------
    ValueError
        If the strategy name is unknown
    """
    if cfg.strategy not in _STRATEGIES:
        raise ValueError(
            f"Unknown ordering strategy '{cfg.strategy}', expected one of {sorted(_STRATEGIES)}"
        )
    if cfg.strategy == KDTreeNearestNeighbor.name:
        return KDTreeNearestNeighbor(initial_k=cfg.kdtree_initial_k)
    return GreedyNearestNeighbor()


def order_points(points: np.ndarray) -> np.ndarray:
    """Order points with the brute-force greedy strategy."""
    return GreedyNearestNeighbor().order(points)
