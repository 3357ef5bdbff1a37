"""Mapping of normalized template regions onto page image pixels.

Template fields store their position as fractions of the page size so a
template works at any scan resolution. Cropping needs the same region in
pixels of the specific image at hand, clamped to its bounds.
"""

from dataclasses import dataclass

import numpy as np

from fieldocr.errors import InvalidRegionError
from fieldocr.utils.numeric import round_half_up


@dataclass(frozen=True)
class NormalizedRegion:
    """A rectangle expressed as fractions (0-1) of page width and height."""

    x_norm: float
    y_norm: float
    w_norm: float
    h_norm: float


@dataclass(frozen=True)
class PixelRegion:
    """A rectangle in source-image pixel space."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


def to_pixel_region(
    region: NormalizedRegion, image_width: int, image_height: int
) -> PixelRegion:
    """Convert a normalized region into a pixel rectangle inside the image.

    Out-of-bounds regions are clamped silently: the origin is floored at 0
    and the size is cut at the image edge.

    Args:
        region: Normalized region from a template field.
        image_width: Width of the image being cropped, in pixels.
        image_height: Height of the image being cropped, in pixels.

    Returns:
        Pixel rectangle with ``left + width <= image_width`` and
        ``top + height <= image_height``.

    Raises:
        InvalidRegionError: If the clamped width or height is not positive.
    """
    left = max(0, round_half_up(region.x_norm * image_width))
    top = max(0, round_half_up(region.y_norm * image_height))
    width = min(round_half_up(region.w_norm * image_width), image_width - left)
    height = min(round_half_up(region.h_norm * image_height), image_height - top)

    if width <= 0 or height <= 0:
        raise InvalidRegionError(left, top, width, height)
    return PixelRegion(left=left, top=top, width=width, height=height)


def crop(image: np.ndarray, region: PixelRegion) -> np.ndarray:
    """Cut ``region`` out of an image array (grayscale or colour)."""
    return image[region.top : region.bottom, region.left : region.right].copy()
