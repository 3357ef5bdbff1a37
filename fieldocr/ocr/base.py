"""Shared OCR result structures and the engine interface.

Every backend returns a :class:`UnifiedOCRResult` regardless of how much
geometry it can provide. ``geometry_source`` records where word boxes came
from so callers can tell backend boxes from estimated ones.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum

from fieldocr.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BoundingBox:
    """Axis-aligned bounding box in pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @classmethod
    def from_corners(cls, x0: int, y0: int, x1: int, y1: int) -> "BoundingBox":
        return cls(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


@dataclass
class OCRWord:
    """A single recognized word."""

    text: str
    confidence: float
    bbox: BoundingBox


@dataclass
class OCRLine:
    """Words on one visual line, in reading order."""

    text: str
    confidence: float
    bbox: BoundingBox
    words: list[OCRWord] = field(default_factory=list)


@dataclass
class OCRParagraph:
    """Consecutive lines separated by small vertical gaps, top to bottom."""

    text: str
    confidence: float
    bbox: BoundingBox
    lines: list[OCRLine] = field(default_factory=list)


class GeometrySource(StrEnum):
    """Provenance of the word boxes in a result."""

    BACKEND = "backend"
    MARKUP = "markup"
    SYNTHETIC = "synthetic"
    NONE = "none"


@dataclass
class UnifiedOCRResult:
    """Normalized output of any OCR backend.

    ``blocks`` holds the same objects as ``paragraphs``; there is no finer
    block-level grouping.
    """

    text: str
    confidence: float
    engine: str
    language: str
    words: list[OCRWord] = field(default_factory=list)
    lines: list[OCRLine] = field(default_factory=list)
    paragraphs: list[OCRParagraph] = field(default_factory=list)
    blocks: list[OCRParagraph] = field(default_factory=list)
    geometry_source: GeometrySource = GeometrySource.NONE


class OCREngine(ABC):
    """Interface implemented by every OCR backend.

    Engines are used as context managers so any long-lived handle (a
    process check, an HTTP session) is released when a batch finishes:

        with engine:
            result = engine.recognize(png_bytes, "eng")
    """

    name: str = "ocr"

    def __init__(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        """Acquire backend resources. Subclasses extend this."""
        self._open = True

    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        self._open = False

    def __enter__(self) -> "OCREngine":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @abstractmethod
    def recognize(
        self, image: bytes, language: str | None = None, structure: bool = True
    ) -> UnifiedOCRResult:
        """Recognize text in an encoded image.

        Args:
            image: Encoded image bytes (PNG preferred).
            language: Backend language code; engine default when ``None``.
            structure: Build word/line/paragraph structure. Field crops
                only need text and confidence and pass ``False``.

        Returns:
            Normalized OCR result.

        Raises:
            OcrEngineFailure: If the backend call fails.
        """
