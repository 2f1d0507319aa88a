"""Greyscale conversion, resizing and contrast enhancement for slip images.

Phone photos of slips are large, colourful and unevenly lit. Shrinking them
to a bounded width and stretching the grey levels gives Tesseract cleaner
glyphs and keeps OCR time predictable.
"""

import cv2
import numpy as np

from slipcheck.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def resize_to_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """Shrink an image so it is at most ``max_width`` pixels wide.

    Images already narrow enough are returned unchanged; they are never
    enlarged.

    Args:
        image: Input image.
        max_width: Width bound in pixels.

    Returns:
        Resized image preserving the aspect ratio.
    """
    height, width = image.shape[:2]
    if width <= max_width:
        return image
    scale = max_width / width
    new_size = (max_width, max(1, round(height * scale)))
    logger.debug("Resizing %dx%d -> %dx%d", width, height, *new_size)
    return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)


def stretch_contrast(image: np.ndarray) -> np.ndarray:
    """Stretch pixel intensities to the full 0-255 range.

    Args:
        image: Grayscale image.

    Returns:
        Contrast-normalized image.
    """
    return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)


def apply_clahe(
    image: np.ndarray,
    clip_limit: float = 2.0,
    tile_size: int = 8,
) -> np.ndarray:
    """Enhance contrast using CLAHE (Contrast Limited Adaptive Histogram Equalization).

    Args:
        image: Input image (BGR or grayscale).
        clip_limit: Threshold for contrast limiting.
        tile_size: Size of the grid for histogram equalization.

    Returns:
        Contrast-enhanced grayscale image.
    """
    gray = to_gray(image)
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    result = clahe.apply(gray)
    logger.debug("Applied CLAHE (clip=%.1f, tile=%d)", clip_limit, tile_size)
    return result
