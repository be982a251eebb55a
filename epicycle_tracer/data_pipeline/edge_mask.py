"""Image → binary edge mask (input side of the pipeline).

Steps:
    1. Decode image to 8-bit grayscale (Pillow)
    2. Gaussian blur (skipped when blur_sigma == 0)
    3. Canny edge detection with hysteresis thresholds
    4. Dilation with a square (2r+1)×(2r+1) kernel so the two edges Canny
       finds on either side of a drawn line merge into one band; thinning
       then recovers a single centerline

Output masks are uint8 0/255, shape (H, W).
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

from ..utils import validators

logger = logging.getLogger(__name__)


def load_grayscale(path: Union[str, Path]) -> np.ndarray:
    """Decode an image file to grayscale.

    Parameters
    ----------
    path : Union[str, Path]
        Image path (any format Pillow reads)

    Returns
    -------
    np.ndarray
        uint8, shape (H, W)

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file cannot be decoded
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            gray = np.array(img.convert('L'))
    except OSError as e:
        raise ValueError(f"Failed to decode image {path}: {e}") from e

    logger.info(f"Loaded {path.name}: {gray.shape[1]}x{gray.shape[0]} px")
    return gray


def detect_edges(gray: np.ndarray, cfg: validators.EdgeDetectionConfig) -> np.ndarray:
    """Canny edges merged by dilation.

    Parameters
    ----------
    gray : np.ndarray
        uint8 grayscale, shape (H, W)
    cfg : EdgeDetectionConfig
        Blur, Canny and dilation settings

    Returns
    -------
    np.ndarray
        uint8 mask (0 or 255), shape (H, W)

    Raises
    ------
    ValueError
        If gray is not a 2-D array
    """
    gray = np.asarray(gray)
    if gray.ndim != 2:
        raise ValueError(f"Expected a 2-D grayscale image, got shape {gray.shape}")
    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)

    if cfg.blur_sigma > 0:
        gray = cv2.GaussianBlur(gray, (0, 0), cfg.blur_sigma)

    edges = cv2.Canny(gray, cfg.canny_low, cfg.canny_high)

    if cfg.dilate_radius > 0:
        size = 2 * cfg.dilate_radius + 1
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (size, size))
        edges = cv2.dilate(edges, kernel, iterations=1)

    logger.debug(f"Edge mask coverage: {np.mean(edges > 0):.4f}")
    return edges


def edge_mask_from_image(
    path: Union[str, Path],
    cfg: validators.EdgeDetectionConfig
) -> np.ndarray:
    """load_grayscale() followed by detect_edges()."""
    return detect_edges(load_grayscale(path), cfg)
