"""Image preprocessing pipeline for template field OCR.

Runs the transforms of one preprocessing profile (resize, grayscale,
normalize, sharpen, contrast, denoise, binarize) and encodes the result
as an uncompressed PNG for the OCR backend. Quality metrics are
measured before and after for logging.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from fieldocr.errors import PreprocessingFailure
from fieldocr.utils.config import PreprocessingConfig, PreprocessingProfile
from fieldocr.utils.logger import get_logger

from .binarize import binarize_threshold, to_gray
from .denoise import denoise_median
from .enhance import boost_contrast, normalize_histogram, resize_to_width, sharpen

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_gray(image).std())


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, TIFF, ...) into a BGR array.

    Raises:
        PreprocessingFailure: If the bytes are not a decodable image.
    """
    if not data:
        raise PreprocessingFailure("Empty image buffer")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise PreprocessingFailure("Unsupported or corrupt image data")
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image as a lossless, uncompressed PNG.

    Raises:
        PreprocessingFailure: If encoding fails.
    """
    ok, buffer = cv2.imencode(".png", image, [cv2.IMWRITE_PNG_COMPRESSION, 0])
    if not ok:
        raise PreprocessingFailure("PNG encoding failed")
    return buffer.tobytes()


class PreprocessingPipeline:
    """Applies one of two preprocessing profiles to an image.

    The pipeline holds no per-call state, so the same input and flag always
    produce the same bytes.

    Args:
        config: Preprocessing configuration holding both profiles.
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def process(
        self, image: np.ndarray | bytes, aggressive: bool = True
    ) -> tuple[bytes, QualityMetrics]:
        """Run the selected profile on an image.

        Args:
            image: Input image as a BGR/grayscale array or encoded bytes.
            aggressive: Select the aggressive profile (binarized output)
                rather than the light one.

        Returns:
            Tuple of (png_bytes, quality_metrics).

        Raises:
            PreprocessingFailure: If the image cannot be decoded or a
                transform fails.
        """
        if isinstance(image, bytes):
            image = decode_image(image)
        if image.size == 0:
            raise PreprocessingFailure("Cannot preprocess an empty image")

        profile = self.config.profile(aggressive)
        try:
            metrics = QualityMetrics(
                sharpness_before=calculate_sharpness(image),
                contrast_before=calculate_contrast(image),
                sharpness_after=0.0,
                contrast_after=0.0,
            )
            result = self._apply(image, profile)
            metrics.sharpness_after = calculate_sharpness(result)
            metrics.contrast_after = calculate_contrast(result)
        except (cv2.error, ValueError) as exc:
            raise PreprocessingFailure(f"Image preprocessing failed: {exc}") from exc

        logger.debug(
            "Preprocessing (%s) complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            "aggressive" if aggressive else "light",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return encode_png(result), metrics

    def _apply(self, image: np.ndarray, profile: PreprocessingProfile) -> np.ndarray:
        result = resize_to_width(image, profile.target_width)

        if profile.grayscale:
            result = to_gray(result)

        if profile.normalize:
            result = normalize_histogram(result)

        result = sharpen(
            result, sigma=profile.sharpen_sigma, amount=profile.sharpen_amount
        )

        if profile.contrast_gain is not None:
            result = boost_contrast(result, gain=profile.contrast_gain)

        result = denoise_median(result, kernel_size=profile.median_kernel)

        if profile.binarize_threshold is not None:
            result = binarize_threshold(result, threshold=profile.binarize_threshold)

        return result


def preprocess_image(
    image: np.ndarray | bytes,
    aggressive: bool = True,
    config: PreprocessingConfig | None = None,
) -> bytes:
    """Preprocess an image with default or given profiles and return PNG bytes."""
    data, _ = PreprocessingPipeline(config).process(image, aggressive=aggressive)
    return data
