"""Resizing and tonal enhancement for OCR legibility.

Field crops are often only a few dozen pixels tall; recognizers do
much better once the crop is scaled up to document-like resolution
and its tonal range is stretched and sharpened.
"""

import cv2
import numpy as np

from fieldocr.utils.logger import get_logger

logger = get_logger(__name__)


def resize_to_width(image: np.ndarray, target_width: int) -> np.ndarray:
    """Scale an image to ``target_width`` keeping its aspect ratio.

    Both enlargement and reduction are allowed.

    Args:
        image: Input image.
        target_width: Desired width in pixels.

    Returns:
        Resized image, or the input when it already has the target width.
    """
    h, w = image.shape[:2]
    if w == target_width or w == 0:
        return image
    scale = target_width / w
    new_height = max(1, int(round(h * scale)))
    interpolation = cv2.INTER_CUBIC if scale > 1 else cv2.INTER_AREA
    result = cv2.resize(image, (target_width, new_height), interpolation=interpolation)
    logger.debug("Resized %dx%d -> %dx%d", w, h, target_width, new_height)
    return result


def normalize_histogram(image: np.ndarray) -> np.ndarray:
    """Stretch intensities so the 1st-99th percentile spans 0-255.

    Args:
        image: Input image (uint8).

    Returns:
        Stretched image. Flat images are returned unchanged.
    """
    low, high = np.percentile(image, (1, 99))
    if high <= low:
        return image
    stretched = (image.astype(np.float32) - low) * (255.0 / (high - low))
    return np.clip(stretched, 0, 255).astype(np.uint8)


def sharpen(image: np.ndarray, sigma: float = 2.0, amount: float = 1.5) -> np.ndarray:
    """Sharpen with an unsharp mask.

    Args:
        image: Input image.
        sigma: Gaussian sigma of the blur that is subtracted.
        amount: Strength of the high-pass component added back.

    Returns:
        Sharpened image with the same shape and dtype.
    """
    if sigma <= 0:
        return image
    blurred = cv2.GaussianBlur(image, (0, 0), sigma)
    return cv2.addWeighted(image, 1.0 + amount, blurred, -amount, 0)


def boost_contrast(image: np.ndarray, gain: float = 1.8) -> np.ndarray:
    """Scale intensities linearly around mid-gray.

    Computes ``gain * (pixel - 128) + 128`` and clips to 0-255.

    Args:
        image: Input image (uint8).
        gain: Contrast multiplier; values above 1 increase contrast.

    Returns:
        Contrast-adjusted image.
    """
    offset = -(128.0 * gain) + 128.0
    scaled = image.astype(np.float32) * gain + offset
    logger.debug("Applied linear contrast gain %.2f", gain)
    return np.clip(scaled, 0, 255).astype(np.uint8)
