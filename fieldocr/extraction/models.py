"""Template and extraction result models.

Templates and their fields are pydantic models since they arrive from
outside (YAML files, a persistence layer) and need validation. Results
are plain dataclasses produced internally.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, Field

from .geometry import NormalizedRegion

GOOD_THRESHOLD = 85.0


class FieldStatus(StrEnum):
    """Quality tier of an extracted field value."""

    PENDING = "pending"
    GOOD = "good"
    LOW_CONFIDENCE = "low_confidence"
    NO_DATA = "no_data"


def classify_status(
    confidence: float,
    text: str | None,
    good_threshold: float = GOOD_THRESHOLD,
) -> FieldStatus:
    """Derive a field status from its confidence and extracted text.

    Args:
        confidence: OCR confidence, 0-100.
        text: Extracted text, or ``None`` when extraction failed.
        good_threshold: Minimum confidence for ``good``.

    Returns:
        ``no_data`` for empty text regardless of confidence, ``good`` at or
        above ``good_threshold``, otherwise ``low_confidence``. Text read
        with very low confidence is still ``low_confidence``.
    """
    if not text or not text.strip():
        return FieldStatus.NO_DATA
    if confidence >= good_threshold:
        return FieldStatus.GOOD
    return FieldStatus.LOW_CONFIDENCE


class TemplateField(BaseModel):
    """A named rectangular region on one page of a template."""

    field_id: str
    template_id: str
    field_name: str
    label: str | None = None
    page_number: int = Field(default=1, ge=1)
    x_norm: float = Field(ge=0.0)
    y_norm: float = Field(ge=0.0)
    w_norm: float = Field(ge=0.0)
    h_norm: float = Field(ge=0.0)
    sample_value: str | None = None
    sample_extracted_value: str | None = None
    confidence_score: float | None = Field(default=None, ge=0.0, le=100.0)
    field_status: FieldStatus = FieldStatus.PENDING
    notes: str | None = None

    @property
    def region(self) -> NormalizedRegion:
        return NormalizedRegion(self.x_norm, self.y_norm, self.w_norm, self.h_norm)


class Template(BaseModel):
    """A document type definition: an ordered set of fields across pages."""

    template_id: str
    name: str
    description: str | None = None
    fields: list[TemplateField] = Field(default_factory=list)

    def fields_on_page(self, page_number: int) -> list[TemplateField]:
        return [f for f in self.fields if f.page_number == page_number]


@dataclass
class FieldExtractionResult:
    """Outcome of extracting one field from one page image.

    ``raw_text is None`` with ``confidence == 0`` means nothing usable came
    back, either because the region was empty or because extraction failed.
    """

    field_id: str
    field_name: str
    raw_text: str | None
    confidence: float
    notes: str | None = None
    page_number: int = 1

    @property
    def status(self) -> FieldStatus:
        return classify_status(self.confidence, self.raw_text)


@dataclass
class PageExtractionBatch:
    """Results for one page, in template field order."""

    page_number: int
    results: list[FieldExtractionResult] = field(default_factory=list)
    error: str | None = None

    @property
    def fields_with_text(self) -> int:
        return sum(1 for r in self.results if r.raw_text)


@dataclass
class TemplateExtractionResult:
    """Aggregated results of running a template over a whole document."""

    template_id: str | None
    page_count: int
    pages: list[PageExtractionBatch] = field(default_factory=list)
    results: list[FieldExtractionResult] = field(default_factory=list)
    not_attempted: list[str] = field(default_factory=list)

    @property
    def pages_with_data(self) -> int:
        pages = {r.page_number for r in self.results if r.raw_text}
        return len(pages)

    @property
    def fields_attempted(self) -> int:
        return len(self.results)

    @property
    def fields_with_text(self) -> int:
        return sum(1 for r in self.results if r.raw_text)

    def to_dict(self) -> dict[str, object]:
        """Serialize to plain JSON-compatible types."""
        return {
            "template_id": self.template_id,
            "page_count": self.page_count,
            "summary": {
                "pages_with_data": self.pages_with_data,
                "fields_attempted": self.fields_attempted,
                "fields_with_text": self.fields_with_text,
                "not_attempted": list(self.not_attempted),
            },
            "pages": [
                {
                    "page_number": page.page_number,
                    "error": page.error,
                    "field_ids": [r.field_id for r in page.results],
                }
                for page in self.pages
            ],
            "results": [
                {
                    "field_id": r.field_id,
                    "field_name": r.field_name,
                    "page_number": r.page_number,
                    "raw_text": r.raw_text,
                    "confidence": r.confidence,
                    "status": r.status.value,
                    "notes": r.notes,
                }
                for r in self.results
            ],
        }


def apply_results(
    fields: Iterable[TemplateField],
    results: Iterable[FieldExtractionResult],
    good_threshold: float = GOOD_THRESHOLD,
) -> list[TemplateField]:
    """Write extraction outcomes onto copies of the template fields.

    Args:
        fields: Template fields in template order.
        results: Extraction results, matched to fields by ``field_id``.
        good_threshold: Minimum confidence for ``good``.

    Returns:
        Updated copies in the original field order. Fields without a result
        are returned unchanged.
    """
    by_id = {r.field_id: r for r in results}
    updated: list[TemplateField] = []
    for tf in fields:
        result = by_id.get(tf.field_id)
        if result is None:
            updated.append(tf)
            continue
        updated.append(
            tf.model_copy(
                update={
                    "sample_extracted_value": result.raw_text,
                    "confidence_score": result.confidence,
                    "field_status": classify_status(
                        result.confidence, result.raw_text, good_threshold
                    ),
                    "notes": result.notes,
                }
            )
        )
    return updated
