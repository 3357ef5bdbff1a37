"""Tests for the image preprocessing pipeline."""

import cv2
import numpy as np
import pytest

from conftest import png_bytes
from fieldocr.errors import PreprocessingFailure
from fieldocr.preprocessing.binarize import binarize_threshold, to_gray
from fieldocr.preprocessing.denoise import denoise_median
from fieldocr.preprocessing.enhance import (
    boost_contrast,
    normalize_histogram,
    resize_to_width,
    sharpen,
)
from fieldocr.preprocessing.pipeline import (
    PreprocessingPipeline,
    QualityMetrics,
    calculate_contrast,
    calculate_sharpness,
    decode_image,
    encode_png,
    preprocess_image,
)
from fieldocr.utils.config import PreprocessingConfig, PreprocessingProfile


def _make_noisy_image(height: int = 200, width: int = 300) -> np.ndarray:
    """Create a synthetic noisy grayscale image for testing."""
    rng = np.random.default_rng(42)
    base = np.zeros((height, width), dtype=np.uint8)
    base[50:150, 50:250] = 200
    noise = rng.integers(0, 50, size=(height, width), dtype=np.uint8)
    return np.clip(base.astype(np.int16) + noise.astype(np.int16), 0, 255).astype(
        np.uint8
    )


def _decode(data: bytes) -> np.ndarray:
    return cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)


def _small_config() -> PreprocessingConfig:
    """Profiles with small target widths to keep tests fast."""
    return PreprocessingConfig(
        aggressive=PreprocessingProfile(target_width=300),
        light=PreprocessingProfile(
            target_width=250,
            grayscale=False,
            sharpen_sigma=1.0,
            sharpen_amount=1.0,
            contrast_gain=None,
            median_kernel=0,
            binarize_threshold=None,
        ),
    )


class TestBinarize:
    """Tests for grayscale conversion and fixed thresholding."""

    def test_to_gray_color(self, sample_color_image: np.ndarray) -> None:
        assert to_gray(sample_color_image).ndim == 2

    def test_to_gray_bgra(self) -> None:
        image = np.zeros((10, 10, 4), dtype=np.uint8)
        assert to_gray(image).shape == (10, 10)

    def test_to_gray_passthrough(self, sample_image: np.ndarray) -> None:
        assert to_gray(sample_image) is sample_image

    def test_threshold_is_inclusive(self) -> None:
        image = np.array([[139, 140, 141, 0, 255]], dtype=np.uint8)
        result = binarize_threshold(image, threshold=140)
        assert result.tolist() == [[0, 255, 255, 0, 255]]


class TestDenoise:
    """Tests for median denoising."""

    def test_removes_salt_noise(self) -> None:
        image = np.zeros((20, 20), dtype=np.uint8)
        image[10, 10] = 255
        assert denoise_median(image, 3)[10, 10] == 0

    def test_kernel_one_is_noop(self, sample_image: np.ndarray) -> None:
        assert denoise_median(sample_image, 1) is sample_image

    def test_even_kernel_raises(self, sample_image: np.ndarray) -> None:
        with pytest.raises(ValueError):
            denoise_median(sample_image, 4)


class TestEnhance:
    """Tests for resizing, normalization, sharpening, and contrast."""

    def test_resize_upscales_keeping_aspect(self, sample_image: np.ndarray) -> None:
        result = resize_to_width(sample_image, 600)
        assert result.shape == (400, 600)

    def test_resize_downscales(self, sample_color_image: np.ndarray) -> None:
        result = resize_to_width(sample_color_image, 150)
        assert result.shape == (100, 150, 3)

    def test_resize_same_width_is_noop(self, sample_image: np.ndarray) -> None:
        assert resize_to_width(sample_image, 300) is sample_image

    def test_normalize_stretches_range(self) -> None:
        image = np.tile(np.arange(100, 150, dtype=np.uint8), (10, 1))
        result = normalize_histogram(image)
        assert result.min() == 0
        assert result.max() == 255

    def test_normalize_flat_image_unchanged(self) -> None:
        image = np.full((10, 10), 128, dtype=np.uint8)
        assert normalize_histogram(image) is image

    def test_sharpen_keeps_shape_and_dtype(self) -> None:
        image = _make_noisy_image()
        result = sharpen(image, sigma=2.0, amount=1.5)
        assert result.shape == image.shape
        assert result.dtype == np.uint8

    def test_sharpen_increases_sharpness(self) -> None:
        image = cv2.GaussianBlur(_make_noisy_image(), (0, 0), 2)
        assert calculate_sharpness(sharpen(image)) > calculate_sharpness(image)

    def test_contrast_around_mid_gray(self) -> None:
        image = np.array([[128, 100, 200, 0]], dtype=np.uint8)
        result = boost_contrast(image, gain=1.8)
        assert abs(int(result[0, 0]) - 128) <= 1
        assert result[0, 1] < 100
        assert result[0, 2] == 255
        assert result[0, 3] == 0


class TestQualityMetrics:
    """Tests for image quality metric calculations."""

    def test_sharpness_flat_image_is_zero(self) -> None:
        assert calculate_sharpness(np.full((50, 50), 128, dtype=np.uint8)) == 0.0

    def test_contrast_positive(self, sample_image: np.ndarray) -> None:
        assert calculate_contrast(sample_image) > 0


class TestCodec:
    """Tests for image decoding and PNG encoding."""

    def test_decode_png(self) -> None:
        image = decode_image(png_bytes(40, 20))
        assert image.shape == (20, 40, 3)

    def test_decode_garbage_raises(self) -> None:
        with pytest.raises(PreprocessingFailure):
            decode_image(b"not an image")

    def test_decode_empty_raises(self) -> None:
        with pytest.raises(PreprocessingFailure):
            decode_image(b"")

    def test_encode_png_signature(self, sample_image: np.ndarray) -> None:
        data = encode_png(sample_image)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        assert np.array_equal(_decode(data), sample_image)


class TestPreprocessingPipeline:
    """Tests for the full preprocessing pipeline."""

    def test_aggressive_output_is_binary(self, sample_color_image: np.ndarray) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        data, metrics = pipeline.process(sample_color_image, aggressive=True)

        output = _decode(data)
        assert output.ndim == 2
        assert output.shape[1] == 300
        assert set(np.unique(output).tolist()) <= {0, 255}
        assert isinstance(metrics, QualityMetrics)

    def test_light_output_keeps_color(self, sample_color_image: np.ndarray) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        data, _ = pipeline.process(sample_color_image, aggressive=False)

        output = _decode(data)
        assert output.shape == (167, 250, 3)

    def test_accepts_encoded_bytes(self) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        data, _ = pipeline.process(png_bytes(100, 50), aggressive=True)
        assert _decode(data).shape == (150, 300)

    def test_deterministic(self, sample_color_image: np.ndarray) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        first, _ = pipeline.process(sample_color_image)
        second, _ = pipeline.process(sample_color_image)
        assert first == second

    def test_default_aggressive_width(self, sample_image: np.ndarray) -> None:
        data = preprocess_image(sample_image)
        assert _decode(data).shape == (2000, 3000)

    def test_empty_image_raises(self) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        with pytest.raises(PreprocessingFailure):
            pipeline.process(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_corrupt_bytes_raise(self) -> None:
        pipeline = PreprocessingPipeline(_small_config())
        with pytest.raises(PreprocessingFailure):
            pipeline.process(b"\x00\x01garbage")
