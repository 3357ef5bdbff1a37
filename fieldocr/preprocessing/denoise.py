"""Noise reduction for cropped field images."""

import cv2
import numpy as np

from fieldocr.utils.logger import get_logger

logger = get_logger(__name__)


def denoise_median(image: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Apply a median filter to remove salt-and-pepper speckle.

    Args:
        image: Input image as a numpy array.
        kernel_size: Aperture size; must be odd and greater than 1.
            A value of 0 or 1 returns the image unchanged.

    Returns:
        Denoised image.

    Raises:
        ValueError: If ``kernel_size`` is even.
    """
    if kernel_size <= 1:
        return image
    if kernel_size % 2 == 0:
        raise ValueError(f"Median kernel size must be odd: {kernel_size}")
    result = cv2.medianBlur(image, kernel_size)
    logger.debug("Applied median denoise with kernel_size=%d", kernel_size)
    return result
