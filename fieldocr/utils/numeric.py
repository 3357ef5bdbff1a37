"""Numeric helpers shared by geometry and structure building."""

import math
from collections.abc import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves going up.

    Python's built-in ``round`` uses banker's rounding, which would map
    0.5 and 2.5 to different directions. Pixel coordinates and averaged
    confidences need a single, predictable rule.
    """
    return int(math.floor(value + 0.5))


def mean_rounded(values: Iterable[float]) -> int:
    """Arithmetic mean of ``values`` rounded half up, or 0 when empty."""
    items = list(values)
    if not items:
        return 0
    return round_half_up(sum(items) / len(items))
