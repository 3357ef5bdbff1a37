"""Rebuilding of line and paragraph structure from word boxes.

OCR backends differ widely in what they return: per-word boxes, per-line
overlays, or bare text. The analyzer reduces all of them to the same
shape by clustering on vertical position alone:

* words whose tops are within ``line_threshold`` of the previous word
  (in top-to-bottom order) form a line, read left to right;
* lines whose top is within ``paragraph_threshold`` of the previous
  line's bottom form a paragraph.

When a backend returns text without geometry, ``synthesize`` lays the
words out on a fixed character grid so the same clustering still
applies. Such boxes are approximations and are flagged as synthetic.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from fieldocr.utils.config import StructureConfig
from fieldocr.utils.logger import get_logger
from fieldocr.utils.numeric import mean_rounded, round_half_up

from .base import BoundingBox, OCRLine, OCRParagraph, OCRWord

logger = get_logger(__name__)

T = TypeVar("T", OCRWord, OCRLine)


@dataclass
class Structure:
    """Lines and paragraphs rebuilt from a flat list of words."""

    lines: list[OCRLine]
    paragraphs: list[OCRParagraph]

    @property
    def blocks(self) -> list[OCRParagraph]:
        return list(self.paragraphs)


def union_bbox(boxes: Sequence[BoundingBox]) -> BoundingBox:
    """Return the smallest box enclosing all ``boxes``."""
    x_min = min(b.x for b in boxes)
    y_min = min(b.y for b in boxes)
    x_max = max(b.right for b in boxes)
    y_max = max(b.bottom for b in boxes)
    return BoundingBox(x_min, y_min, x_max - x_min, y_max - y_min)


def cluster(
    items: Sequence[T],
    threshold: float,
    gap: Callable[[T, T], float],
) -> list[list[T]]:
    """Group items into vertical clusters.

    Items are sorted by box top (stable, so ties keep their input order)
    and walked in order; an item joins the current cluster while
    ``gap(previous, item)`` is below ``threshold``.

    Args:
        items: Boxed words or lines.
        threshold: Maximum gap in pixels for two items to share a cluster.
        gap: Vertical distance between consecutive items.

    Returns:
        Clusters in top-to-bottom order, members in sorted order.
    """
    if not items:
        return []

    ordered = sorted(items, key=lambda item: item.bbox.y)
    groups: list[list[T]] = [[ordered[0]]]
    for prev, curr in zip(ordered, ordered[1:]):
        if abs(gap(prev, curr)) < threshold:
            groups[-1].append(curr)
        else:
            groups.append([curr])
    return groups


def _top_gap(prev: T, curr: T) -> float:
    return curr.bbox.y - prev.bbox.y


def _bottom_to_top_gap(prev: T, curr: T) -> float:
    return curr.bbox.y - prev.bbox.bottom


class LayoutAnalyzer:
    """Clusters word boxes into lines and paragraphs.

    Args:
        config: Thresholds and synthetic geometry estimates.
    """

    def __init__(self, config: StructureConfig | None = None) -> None:
        self.config = config or StructureConfig()

    def group_lines(self, words: Sequence[OCRWord]) -> list[OCRLine]:
        """Cluster words into lines; words inside a line are ordered by x."""
        lines: list[OCRLine] = []
        for group in cluster(words, self.config.line_threshold, _top_gap):
            members = sorted(group, key=lambda w: w.bbox.x)
            lines.append(
                OCRLine(
                    text=" ".join(w.text for w in members),
                    confidence=mean_rounded(w.confidence for w in members),
                    bbox=union_bbox([w.bbox for w in members]),
                    words=members,
                )
            )
        return lines

    def group_paragraphs(self, lines: Sequence[OCRLine]) -> list[OCRParagraph]:
        """Cluster lines into paragraphs, top to bottom."""
        paragraphs: list[OCRParagraph] = []
        for group in cluster(
            lines, self.config.paragraph_threshold, _bottom_to_top_gap
        ):
            paragraphs.append(
                OCRParagraph(
                    text=" ".join(line.text for line in group),
                    confidence=mean_rounded(line.confidence for line in group),
                    bbox=union_bbox([line.bbox for line in group]),
                    lines=list(group),
                )
            )
        return paragraphs

    def analyze(self, words: Sequence[OCRWord]) -> Structure:
        """Build lines and paragraphs from a flat list of words.

        Args:
            words: Words with pixel boxes from any source.

        Returns:
            Rebuilt structure; empty when there are no words.
        """
        if not words:
            return Structure(lines=[], paragraphs=[])

        lines = self.group_lines(words)
        paragraphs = self.group_paragraphs(lines)
        logger.debug(
            "Clustered %d words into %d lines and %d paragraphs",
            len(words),
            len(lines),
            len(paragraphs),
        )
        return Structure(lines=lines, paragraphs=paragraphs)

    def synthesize(
        self, text: str, confidence: float
    ) -> tuple[list[OCRWord], Structure]:
        """Estimate word boxes from line-broken plain text.

        Each non-blank line of ``text`` becomes one line of words laid out
        left to right with ``char_width`` pixels per character and
        ``word_spacing`` between words; lines advance by ``line_spacing``.

        Args:
            text: Full recognized text.
            confidence: Overall confidence applied to every word and line.

        Returns:
            Tuple of (words, structure). The boxes are internally
            consistent but do not correspond to real image positions.
        """
        cfg = self.config
        conf = round_half_up(confidence)
        words: list[OCRWord] = []
        lines: list[OCRLine] = []

        y_offset = 0
        for raw_line in text.splitlines():
            tokens = raw_line.split()
            if not tokens:
                continue

            x_offset = 0
            line_words: list[OCRWord] = []
            for token in tokens:
                width = len(token) * cfg.char_width
                line_words.append(
                    OCRWord(
                        text=token,
                        confidence=conf,
                        bbox=BoundingBox(x_offset, y_offset, width, cfg.line_height),
                    )
                )
                x_offset += width + cfg.word_spacing

            lines.append(
                OCRLine(
                    text=" ".join(tokens),
                    confidence=conf,
                    bbox=union_bbox([w.bbox for w in line_words]),
                    words=line_words,
                )
            )
            words.extend(line_words)
            y_offset += cfg.line_spacing

        paragraphs = self.group_paragraphs(lines)
        logger.debug("Synthesized %d words on %d lines", len(words), len(lines))
        return words, Structure(lines=lines, paragraphs=paragraphs)
