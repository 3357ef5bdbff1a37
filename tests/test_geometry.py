"""Tests for normalized-to-pixel region mapping and cropping."""

import numpy as np
import pytest

from fieldocr.errors import InvalidRegionError
from fieldocr.extraction.geometry import (
    NormalizedRegion,
    PixelRegion,
    crop,
    to_pixel_region,
)
from fieldocr.utils.numeric import mean_rounded, round_half_up


class TestRoundHalfUp:
    """Tests for the round_half_up helper."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.4999, 2), (-0.5, 0), (7.0, 7)],
    )
    def test_halves_round_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected

    def test_mean_rounded(self) -> None:
        assert mean_rounded([90, 85]) == 88
        assert mean_rounded([]) == 0


class TestToPixelRegion:
    """Tests for mapping normalized regions onto an image."""

    def test_basic_mapping(self) -> None:
        region = to_pixel_region(NormalizedRegion(0.1, 0.2, 0.5, 0.25), 1000, 800)
        assert region == PixelRegion(left=100, top=160, width=500, height=200)
        assert region.right == 600
        assert region.bottom == 360

    def test_half_pixel_rounds_up(self) -> None:
        region = to_pixel_region(NormalizedRegion(0.25, 0.25, 0.5, 0.5), 10, 10)
        assert (region.left, region.top) == (3, 3)
        assert (region.width, region.height) == (5, 5)

    def test_overflowing_region_is_clamped(self) -> None:
        region = to_pixel_region(NormalizedRegion(0.8, 0.9, 0.5, 0.5), 1000, 1000)
        assert region.left == 800
        assert region.right == 1000
        assert region.bottom == 1000

    @pytest.mark.parametrize(
        ("x", "y", "w", "h"),
        [
            (0.0, 0.0, 1.0, 1.0),
            (0.999, 0.999, 1.0, 1.0),
            (0.33, 0.66, 0.9, 0.1),
            (0.5, 0.01, 0.001, 0.999),
        ],
    )
    def test_region_stays_inside_image(
        self, x: float, y: float, w: float, h: float
    ) -> None:
        width, height = 1237, 1749
        region = to_pixel_region(NormalizedRegion(x, y, w, h), width, height)
        assert region.left >= 0
        assert region.top >= 0
        assert region.left + region.width <= width
        assert region.top + region.height <= height

    def test_zero_width_raises(self) -> None:
        with pytest.raises(InvalidRegionError) as exc_info:
            to_pixel_region(NormalizedRegion(0.1, 0.1, 0.0, 0.5), 1000, 1000)
        assert exc_info.value.width == 0

    def test_region_outside_image_raises(self) -> None:
        with pytest.raises(InvalidRegionError):
            to_pixel_region(NormalizedRegion(1.0, 0.5, 0.2, 0.2), 1000, 1000)

    def test_sub_pixel_region_raises(self) -> None:
        with pytest.raises(InvalidRegionError):
            to_pixel_region(NormalizedRegion(0.5, 0.5, 0.0004, 0.5), 1000, 1000)


class TestCrop:
    """Tests for cropping pixel regions."""

    def test_crop_shape_color(self, sample_color_image: np.ndarray) -> None:
        result = crop(sample_color_image, PixelRegion(50, 40, 100, 30))
        assert result.shape == (30, 100, 3)

    def test_crop_shape_gray(self, sample_image: np.ndarray) -> None:
        result = crop(sample_image, PixelRegion(0, 0, 10, 20))
        assert result.shape == (20, 10)

    def test_crop_is_a_copy(self, sample_image: np.ndarray) -> None:
        result = crop(sample_image, PixelRegion(60, 60, 10, 10))
        result[:] = 0
        assert sample_image[60, 60] == 255
