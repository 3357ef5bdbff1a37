"""Grayscale conversion and fixed-threshold binarization.

Template regions are small, tightly cropped areas where a global
luminance cut separates ink from paper more predictably than an
adaptive threshold computed over a handful of pixels.
"""

import cv2
import numpy as np

from fieldocr.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA, or grayscale).

    Returns:
        Grayscale image.
    """
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def binarize_threshold(image: np.ndarray, threshold: int = 140) -> np.ndarray:
    """Binarize an image with a fixed luminance threshold.

    Pixels at or above ``threshold`` become white, everything else black.

    Args:
        image: Input image (BGR or grayscale).
        threshold: Luminance cut-off, 0-255.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_gray(image)
    # cv2 keeps values strictly greater than the threshold
    _, binary = cv2.threshold(gray, threshold - 1, 255, cv2.THRESH_BINARY)
    logger.debug("Applied fixed binarization at %d", threshold)
    return binary
