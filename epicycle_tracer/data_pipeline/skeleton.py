"""Zhang–Suen thinning: binary mask → one-pixel-wide skeleton.

Pipeline position:
    edge mask → [thin] → skeleton → centered points → path orderer

Neighborhood convention (clockwise from North):

    NW  N  NE        P9 P2 P3
     W  .  E    ==   P8 P1 P4
    SW  S  SE        P7 P6 P5

    index:  0=N 1=NE 2=E 3=SE 4=S 5=SW 6=W 7=NW

A foreground pixel is removed in a sub-iteration iff
    - exactly one 0→1 transition around the cyclic neighbor sequence,
    - 2 ≤ foreground neighbors ≤ 6,
    - sub-iteration 1: N·E·S == 0 and E·S·W == 0
      sub-iteration 2: N·E·W == 0 and N·S·W == 0

Each sub-iteration evaluates every interior pixel against the same snapshot
and applies all removals as one batch, so the result does not depend on
scan order. Border pixels are never evaluated and therefore never removed.

The thinner keeps two grid buffers and swaps them after each sub-iteration;
no buffer is written while it is being read.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from ..utils import geometry, validators

logger = logging.getLogger(__name__)

N, NE, E, SE, S, SW, W, NW = range(8)

# (row offset, col offset) per neighbor, clockwise from North
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1),
)

# Neighbor triples whose product must vanish, per sub-iteration
_CORNER_TRIPLES = {
    1: ((N, E, S), (E, S, W)),
    2: ((N, E, W), (N, S, W)),
}


def sample_neighborhood(grid: np.ndarray, x: int, y: int) -> np.ndarray:
    """8-neighborhood of interior pixel (x, y), clockwise from North.

    Parameters
    ----------
    grid : np.ndarray
        Boolean or 0/1 grid, shape (H, W)
    x, y : int
        Column and row, 1 ≤ x ≤ W-2 and 1 ≤ y ≤ H-2

    Returns
    -------
    np.ndarray
        (8,) uint8 in {0, 1}: N, NE, E, SE, S, SW, W, NW

    Raises
    ------
    ValueError
        If (x, y) is on the border or outside the grid
    """
    H, W = grid.shape
    if not (1 <= x <= W - 2 and 1 <= y <= H - 2):
        raise ValueError(f"({x}, {y}) is not an interior pixel of a {W}x{H} grid")
    return np.array(
        [grid[y + dr, x + dc] != 0 for dr, dc in NEIGHBOR_OFFSETS],
        dtype=np.uint8,
    )


def neighborhood_stack(grid: np.ndarray) -> np.ndarray:
    """Neighborhoods of all interior pixels at once.

    Parameters
    ----------
    grid : np.ndarray
        Boolean grid, shape (H, W) with H, W ≥ 3

    Returns
    -------
    np.ndarray
        (8, H-2, W-2) uint8; [k, r, c] is neighbor k of pixel (r+1, c+1)
    """
    H, W = grid.shape
    g = grid.astype(np.uint8, copy=False)
    return np.stack([
        g[1 + dr:H - 1 + dr, 1 + dc:W - 1 + dc] for dr, dc in NEIGHBOR_OFFSETS
    ])


def transition_count(neighbors: np.ndarray) -> np.ndarray:
    """Number of 0→1 steps around the cyclic neighbor sequence (axis 0)."""
    nxt = np.roll(neighbors, -1, axis=0)
    return ((neighbors == 0) & (nxt == 1)).sum(axis=0)


def is_removable(neighbors: Sequence[int], step: int) -> bool:
    """Removal predicate for a single pixel.

    Parameters
    ----------
    neighbors : Sequence[int]
        8 values from sample_neighborhood()
    step : int
        Sub-iteration, 1 or 2

    Returns
    -------
    bool
        True if a foreground pixel with this neighborhood is deleted
    """
    nb = np.asarray(neighbors, dtype=np.uint8)
    return bool(_removal_predicate(nb, step))


def _removal_predicate(nb: np.ndarray, step: int) -> np.ndarray:
    """Vectorized removal predicate over neighbor axis 0."""
    if step not in _CORNER_TRIPLES:
        raise ValueError(f"Sub-iteration must be 1 or 2, got {step}")

    nonzero = nb.sum(axis=0)
    remove = (transition_count(nb) == 1) & (nonzero >= 2) & (nonzero <= 6)
    for a, b, c in _CORNER_TRIPLES[step]:
        remove &= (nb[a] * nb[b] * nb[c]) == 0
    return remove


def removal_candidates(grid: np.ndarray, step: int) -> np.ndarray:
    """Pixels a sub-iteration would delete from the given snapshot.

    Parameters
    ----------
    grid : np.ndarray
        Boolean grid, shape (H, W)
    step : int
        Sub-iteration, 1 or 2

    Returns
    -------
    np.ndarray
        Boolean mask, shape (H, W); border is always False
    """
    grid = np.asarray(grid, dtype=bool)
    marks = np.zeros(grid.shape, dtype=bool)
    H, W = grid.shape
    if H < 3 or W < 3:
        return marks

    interior = grid[1:-1, 1:-1]
    marks[1:-1, 1:-1] = interior & _removal_predicate(neighborhood_stack(grid), step)
    return marks


class SkeletonThinner:
    """Zhang–Suen thinning run to a fixed point.

    Parameters
    ----------
    foreground_threshold : int
        Input pixels with value > threshold are foreground, default 0
    """

    def __init__(self, foreground_threshold: int = 0):
        self.foreground_threshold = foreground_threshold

    @classmethod
    def from_config(cls, cfg: validators.ThinningConfig) -> 'SkeletonThinner':
        return cls(foreground_threshold=cfg.foreground_threshold)

    def binarize(self, mask: np.ndarray) -> np.ndarray:
        """Threshold a mask into a boolean grid.

        Raises
        ------
        ValueError
            If mask is not 2-D
        """
        mask = np.asarray(mask)
        if mask.ndim != 2:
            raise ValueError(f"Expected a 2-D mask, got shape {mask.shape}")
        if mask.dtype == bool:
            return mask.copy()
        return mask > self.foreground_threshold

    def thin(self, mask: np.ndarray) -> np.ndarray:
        """Thin a mask to its skeleton.

        Parameters
        ----------
        mask : np.ndarray
            Binary mask, shape (H, W), any numeric or bool dtype

        Returns
        -------
        np.ndarray
            Boolean skeleton, shape (H, W)
        """
        current = self.binarize(mask)
        scratch = np.empty_like(current)
        start_count = int(current.sum())

        passes = 0
        while True:
            removed = 0
            for step in (1, 2):
                marks = removal_candidates(current, step)
                n_marked = int(marks.sum())
                if n_marked:
                    np.logical_and(current, ~marks, out=scratch)
                    current, scratch = scratch, current
                    removed += n_marked
            passes += 1
            logger.debug(f"Thinning pass {passes}: removed {removed} pixels")
            if removed == 0:
                break

        logger.info(
            f"Thinned {start_count} → {int(current.sum())} foreground pixels in {passes} passes"
        )
        return current

    def skeleton_points(self, mask: np.ndarray) -> np.ndarray:
        """Thin a mask and return its centered skeleton points (raster order)."""
        return geometry.centered_points(self.thin(mask))


def thin(mask: np.ndarray, foreground_threshold: int = 0) -> np.ndarray:
    """Convenience wrapper: SkeletonThinner(foreground_threshold).thin(mask)."""
    return SkeletonThinner(foreground_threshold).thin(mask)
