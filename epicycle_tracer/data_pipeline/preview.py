"""Static preview of a trace: skeleton dots under the epicycle reconstruction.

The image is the mask's size with the origin at its center, matching the
image-centered point convention:
    - black background
    - skeleton points as dark-gray dots
    - reconstructed closed path (one full period of t) in yellow

Colors are RGB; save with fs.atomic_save_image().
"""

import logging

import cv2
import numpy as np

from ..utils import validators
from .pipeline import EpicycleTrace

logger = logging.getLogger(__name__)

POINT_COLOR = (64, 64, 64)
PATH_COLOR = (255, 255, 0)


def _to_pixels(points: np.ndarray, W: int, H: int) -> np.ndarray:
    """Image-centered points → int32 pixel coordinates (x, y)."""
    px = np.empty_like(points)
    px[:, 0] = points[:, 0] + W / 2.0
    px[:, 1] = points[:, 1] + H / 2.0
    return np.rint(px).astype(np.int32)


def render_preview(
    trace: EpicycleTrace,
    cfg: validators.PreviewConfig
) -> np.ndarray:
    """Render the trace.

    Parameters
    ----------
    trace : EpicycleTrace
        Pipeline result
    cfg : PreviewConfig
        Sample count, dot radius and line width

    Returns
    -------
    np.ndarray
        (H, W, 3) uint8 RGB
    """
    W, H = trace.image_size
    canvas = np.zeros((H, W, 3), dtype=np.uint8)

    if cfg.edge_point_radius > 0:
        for x, y in _to_pixels(trace.points, W, H):
            cv2.circle(canvas, (int(x), int(y)), cfg.edge_point_radius, POINT_COLOR, -1)
    else:
        px = _to_pixels(trace.points, W, H)
        inside = (px[:, 0] >= 0) & (px[:, 0] < W) & (px[:, 1] >= 0) & (px[:, 1] < H)
        canvas[px[inside, 1], px[inside, 0]] = POINT_COLOR

    if trace.epicycles:
        path = _to_pixels(trace.reconstruct(cfg.samples), W, H).reshape(-1, 1, 2)
        cv2.polylines(
            canvas, [path], isClosed=True,
            color=PATH_COLOR, thickness=cfg.path_line_width, lineType=cv2.LINE_AA,
        )

    logger.debug(f"Rendered preview {W}x{H} with {len(trace.epicycles)} epicycles")
    return canvas
