"""Error taxonomy for the field extraction engine.

Per-field failures are recovered into result records by the field
extractor; everything else propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fieldocr.extraction.models import TemplateExtractionResult


class FieldOcrError(Exception):
    """Base class for all errors raised by this package."""


class InvalidRegionError(FieldOcrError):
    """A normalized region maps to a zero or negative area pixel rectangle.

    Args:
        left: Clamped left edge in pixels.
        top: Clamped top edge in pixels.
        width: Computed width after clamping.
        height: Computed height after clamping.
    """

    def __init__(self, left: int, top: int, width: int, height: int) -> None:
        self.left = left
        self.top = top
        self.width = width
        self.height = height
        super().__init__(
            f"Region has no area: left={left}, top={top}, "
            f"width={width}, height={height}"
        )


class PreprocessingFailure(FieldOcrError):
    """An image could not be decoded, transformed, or encoded."""


class OcrEngineFailure(FieldOcrError):
    """An OCR backend call failed.

    Args:
        engine: Name of the engine that failed.
        cause: The underlying exception.
    """

    def __init__(self, engine: str, cause: BaseException) -> None:
        self.engine = engine
        self.cause = cause
        super().__init__(f"{engine} OCR failed: {cause}")


class ConfigurationError(FieldOcrError):
    """A required backend or renderer dependency is unavailable."""


class TemplateError(FieldOcrError):
    """A template definition is missing or invalid."""


class ExtractionTimeout(FieldOcrError):
    """The aggregation deadline passed before every field was attempted.

    Args:
        partial: Results gathered before the deadline, with the ids of
            fields that were never attempted in ``partial.not_attempted``.
    """

    def __init__(self, partial: TemplateExtractionResult) -> None:
        self.partial = partial
        super().__init__(
            f"Extraction timed out after {partial.fields_attempted} fields; "
            f"{len(partial.not_attempted)} not attempted"
        )
