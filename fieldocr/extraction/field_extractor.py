"""Extraction of a single template field from a page image.

For each field the normalized region is mapped to pixels, cropped,
preprocessed, and recognized as a whole. The field is already scoped to
one value, so no line or paragraph structure is rebuilt.
"""

from dataclasses import dataclass

import numpy as np

from fieldocr.errors import InvalidRegionError
from fieldocr.ocr.base import OCREngine
from fieldocr.preprocessing.pipeline import PreprocessingPipeline
from fieldocr.utils.config import ExtractionConfig
from fieldocr.utils.logger import get_logger, preview

from .geometry import NormalizedRegion, crop, to_pixel_region
from .models import FieldExtractionResult, TemplateField

logger = get_logger(__name__)

NO_REGION_NOTE = "No region"
NO_TEXT_NOTE = "No text detected in marked region"
LOW_CONFIDENCE_NOTE = "Low confidence - text may be unclear or partially obscured"


@dataclass
class RegionText:
    """Text recognized inside one region."""

    text: str
    confidence: float
    notes: str | None


class FieldExtractor:
    """Runs crop, preprocess, and OCR for template fields on one engine.

    The engine is borrowed, not owned: opening and closing it is the
    caller's job.

    Args:
        engine: An opened OCR engine.
        preprocessing: Pipeline used on each crop.
        config: Thresholds for the low-confidence annotation.
    """

    def __init__(
        self,
        engine: OCREngine,
        preprocessing: PreprocessingPipeline | None = None,
        config: ExtractionConfig | None = None,
    ) -> None:
        self.engine = engine
        self.preprocessing = preprocessing or PreprocessingPipeline()
        self.config = config or ExtractionConfig()

    def extract_region(
        self,
        image: np.ndarray,
        region: NormalizedRegion,
        aggressive: bool = True,
        language: str | None = None,
    ) -> RegionText:
        """Recognize the text inside a normalized region of a page.

        Args:
            image: Page image as a numpy array.
            region: Normalized field region.
            aggressive: Use the aggressive preprocessing profile.
            language: OCR language code.

        Returns:
            Trimmed text, confidence, and a diagnostic note.

        Raises:
            InvalidRegionError: If the region has no area on this image.
            PreprocessingFailure: If the crop cannot be preprocessed.
            OcrEngineFailure: If the OCR backend fails.
        """
        height, width = image.shape[:2]
        pixels = to_pixel_region(region, width, height)
        logger.debug(
            "Extracting region: x=%d, y=%d, w=%d, h=%d from %dx%d",
            pixels.left,
            pixels.top,
            pixels.width,
            pixels.height,
            width,
            height,
        )

        data, _ = self.preprocessing.process(crop(image, pixels), aggressive=aggressive)
        result = self.engine.recognize(data, language, structure=False)

        text = (result.text or "").strip()
        confidence = result.confidence or 0
        notes: str | None = None
        if not text:
            notes = NO_TEXT_NOTE
        elif confidence < self.config.low_confidence_threshold:
            notes = LOW_CONFIDENCE_NOTE
        return RegionText(text=text, confidence=confidence, notes=notes)

    def extract_field(
        self,
        image: np.ndarray,
        field: TemplateField,
        aggressive: bool = True,
        language: str | None = None,
    ) -> FieldExtractionResult:
        """Extract one template field, never raising for field-level problems.

        Args:
            image: Image of the page the field lives on.
            field: Template field definition.
            aggressive: Use the aggressive preprocessing profile.
            language: OCR language code.

        Returns:
            The field result. A degenerate region yields
            ``notes="No region"``; any failure yields ``raw_text=None``,
            ``confidence=0`` and the error message in ``notes``.
        """
        try:
            region = self.extract_region(image, field.region, aggressive, language)
        except InvalidRegionError as exc:
            logger.warning("Field '%s' has no region: %s", field.field_name, exc)
            return self._failed(field, NO_REGION_NOTE)
        except Exception as exc:
            logger.error("Error extracting field '%s': %s", field.field_name, exc)
            return self._failed(field, f"Error: {exc}")

        logger.info(
            "Field '%s': '%s' (%s%%)",
            field.field_name,
            preview(region.text),
            region.confidence,
        )
        return FieldExtractionResult(
            field_id=field.field_id,
            field_name=field.field_name,
            raw_text=region.text or None,
            confidence=region.confidence,
            notes=region.notes,
            page_number=field.page_number,
        )

    def _failed(self, field: TemplateField, notes: str) -> FieldExtractionResult:
        return FieldExtractionResult(
            field_id=field.field_id,
            field_name=field.field_name,
            raw_text=None,
            confidence=0,
            notes=notes,
            page_number=field.page_number,
        )
