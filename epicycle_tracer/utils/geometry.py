"""Point-set helpers shared by the path orderer and spectral decomposer.

Provides:
    - Mask pixel coordinates → image-centered points (raster-scan order)
    - Points ↔ complex samples
    - Squared distances (single shared formula so every ordering strategy
      compares bit-identical values)
    - Polyline length and jump detection for path diagnostics

All coordinates are pixels, image-centered: x = col - W/2, y = row - H/2
(+Y down, as in the image).
"""

import numpy as np


def as_points(points) -> np.ndarray:
    """Validate and convert to a float64 (N, 2) array.

    Raises
    ------
    ValueError
        If the shape is not (N, 2) or any coordinate is non-finite
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.size == 0:
        return pts.reshape(0, 2)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected points with shape (N, 2), got {pts.shape}")
    if not np.all(np.isfinite(pts)):
        raise ValueError("Points contain non-finite coordinates")
    return pts


def centered_points(mask: np.ndarray) -> np.ndarray:
    """Foreground pixel coordinates of a boolean mask, centered on the image.

    Parameters
    ----------
    mask : np.ndarray
        Boolean array, shape (H, W)

    Returns
    -------
    np.ndarray
        (N, 2) float64 as (x, y), in raster-scan order (row by row,
        left to right)
    """
    H, W = mask.shape
    rows, cols = np.nonzero(mask)
    pts = np.empty((rows.size, 2), dtype=np.float64)
    pts[:, 0] = cols - W / 2.0
    pts[:, 1] = rows - H / 2.0
    return pts


def to_complex(points: np.ndarray) -> np.ndarray:
    """(N, 2) points → (N,) complex128 samples (real = x, imag = y)."""
    pts = as_points(points)
    return pts[:, 0] + 1j * pts[:, 1]


def from_complex(z: np.ndarray) -> np.ndarray:
    """(N,) complex samples → (N, 2) float64 points."""
    z = np.asarray(z, dtype=np.complex128).reshape(-1)
    return np.column_stack([z.real, z.imag])


def squared_distances(points: np.ndarray, origin: np.ndarray) -> np.ndarray:
    """Squared Euclidean distance from origin (2,) to each row of points (N, 2)."""
    dx = points[:, 0] - origin[0]
    dy = points[:, 1] - origin[1]
    return dx * dx + dy * dy


def polyline_length(points: np.ndarray, closed: bool = False) -> float:
    """Total length of a polyline.

    Parameters
    ----------
    points : np.ndarray
        (N, 2) vertices
    closed : bool
        Include the segment from the last vertex back to the first

    Returns
    -------
    float
        Length in pixels (0.0 for fewer than 2 vertices)
    """
    pts = as_points(points)
    if len(pts) < 2:
        return 0.0
    if closed:
        pts = np.vstack([pts, pts[:1]])
    return float(np.sqrt((np.diff(pts, axis=0) ** 2).sum(axis=1)).sum())


def find_jumps(points: np.ndarray, max_step: float = float(np.sqrt(2.0))) -> np.ndarray:
    """Indices i where the step points[i] → points[i+1] exceeds max_step.

    On a skeleton path consecutive pixels are 8-neighbors (step ≤ √2);
    longer steps are the greedy orderer jumping between branches.
    """
    pts = as_points(points)
    if len(pts) < 2:
        return np.zeros(0, dtype=np.intp)
    steps = np.sqrt((np.diff(pts, axis=0) ** 2).sum(axis=1))
    return np.nonzero(steps > max_step + 1e-9)[0]
