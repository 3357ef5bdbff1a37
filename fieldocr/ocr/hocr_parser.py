"""Extraction of word boxes from hOCR markup.

hOCR is the HTML flavour Tesseract emits alongside plain text. Each word
is a ``<span class="ocrx_word" title="bbox x0 y0 x1 y1; ...">`` element.
Only word spans are read; line and paragraph grouping is rebuilt by the
layout analyzer so every backend goes through the same clustering.
"""

import html
import re

from fieldocr.utils.logger import get_logger

from .base import BoundingBox, OCRWord

logger = get_logger(__name__)

DEFAULT_WORD_CONFIDENCE = 85

_WORD_SPAN = re.compile(
    r"<span\b[^>]*?class=['\"]ocrx_word['\"][^>]*?"
    r"title=['\"][^'\"]*?bbox\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)[^'\"]*['\"][^>]*>"
    r"(.*?)</span>",
    re.DOTALL,
)
_TAG = re.compile(r"<[^>]*>")


def parse_hocr(
    markup: str | bytes | None, confidence: float = DEFAULT_WORD_CONFIDENCE
) -> list[OCRWord]:
    """Parse word spans out of hOCR markup.

    Args:
        markup: hOCR document as text or UTF-8 bytes.
        confidence: Confidence assigned to every word; the markup's own
            per-word scores are not used.

    Returns:
        Words in document order. Absent or malformed markup yields an empty
        list rather than an error.
    """
    if not markup:
        return []
    if isinstance(markup, bytes):
        markup = markup.decode("utf-8", errors="replace")

    words: list[OCRWord] = []
    for match in _WORD_SPAN.finditer(markup):
        x0, y0, x1, y1 = (int(v) for v in match.group(1, 2, 3, 4))
        text = html.unescape(_TAG.sub("", match.group(5))).strip()
        if not text or x1 < x0 or y1 < y0:
            continue
        words.append(
            OCRWord(
                text=text,
                confidence=confidence,
                bbox=BoundingBox.from_corners(x0, y0, x1, y1),
            )
        )

    logger.debug("Parsed %d words from hOCR markup", len(words))
    return words
