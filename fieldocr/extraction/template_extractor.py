"""Multi-page template extraction.

Binds each template field to the page image with the same 1-based
position, runs the field extractor over every page that has fields, and
merges the results in page order and, within a page, template order.
Pages without fields are skipped before any OCR work; fields whose page
was not submitted are skipped without error.
"""

import time
from collections.abc import Callable, Sequence

import numpy as np

from fieldocr.errors import ExtractionTimeout, PreprocessingFailure
from fieldocr.ocr.base import OCREngine
from fieldocr.ocr.document_processor import DocumentSource, load_page_images
from fieldocr.ocr.factory import create_engine
from fieldocr.ocr.pdf_handler import PDFHandler
from fieldocr.preprocessing.pipeline import PreprocessingPipeline, decode_image
from fieldocr.utils.config import AppConfig
from fieldocr.utils.logger import get_logger

from .field_extractor import FieldExtractor
from .models import (
    FieldExtractionResult,
    PageExtractionBatch,
    Template,
    TemplateExtractionResult,
    TemplateField,
)

logger = get_logger(__name__)


class TemplateExtractor:
    """Extracts every template field from a sequence of page images.

    A fresh engine is created for each :meth:`extract` call and closed when
    the call ends, whether it succeeds, times out, or raises.

    Args:
        config: Application configuration.
        engine_factory: Builds an unopened OCR engine. Defaults to the
            engine named in ``config.ocr``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        engine_factory: Callable[[], OCREngine] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.preprocessing = PreprocessingPipeline(self.config.preprocessing)
        self.pdf_handler = PDFHandler(dpi=self.config.ocr.pdf_dpi)
        self.engine_factory = engine_factory or (
            lambda: create_engine(self.config.ocr, self.config.structure)
        )

    def extract(
        self,
        pages: Sequence[np.ndarray | bytes],
        fields: Sequence[TemplateField],
        language: str | None = None,
        aggressive: bool | None = None,
        timeout_s: float | None = None,
        template_id: str | None = None,
    ) -> TemplateExtractionResult:
        """Extract template fields from page images.

        Args:
            pages: Page images in page order, as arrays or encoded bytes.
            fields: Template fields in template order.
            language: OCR language code; configured default when ``None``.
            aggressive: Preprocessing profile; configured default when ``None``.
            timeout_s: Overall deadline in seconds; configured default when
                ``None``. Checked before each field.
            template_id: Identifier copied onto the result.

        Returns:
            Per-page batches and the flat result list.

        Raises:
            ExtractionTimeout: If the deadline passes. The exception carries
                the partial result and the ids of fields not attempted.
            ConfigurationError: If the OCR engine cannot be opened.
        """
        lang = language or self.config.ocr.default_lang
        if aggressive is None:
            aggressive = self.config.extraction.aggressive
        if timeout_s is None:
            timeout_s = self.config.extraction.timeout_s
        deadline = time.monotonic() + timeout_s if timeout_s is not None else None

        result = TemplateExtractionResult(
            template_id=template_id, page_count=len(pages)
        )
        self._log_orphan_fields(fields, len(pages))

        with self.engine_factory() as engine:
            extractor = FieldExtractor(
                engine, self.preprocessing, self.config.extraction
            )
            for page_number, page in enumerate(pages, start=1):
                fields_on_page = [f for f in fields if f.page_number == page_number]
                if not fields_on_page:
                    logger.info("Page %d: no fields defined, skipping", page_number)
                    continue

                logger.info(
                    "Extracting %d fields from page %d",
                    len(fields_on_page),
                    page_number,
                )
                batch = PageExtractionBatch(page_number=page_number)
                result.pages.append(batch)

                try:
                    image = _as_array(page)
                except PreprocessingFailure as exc:
                    logger.error("Page %d could not be decoded: %s", page_number, exc)
                    batch.error = str(exc)
                    for f in fields_on_page:
                        self._record(result, batch, _page_failure(f, exc))
                    continue

                for f in fields_on_page:
                    if deadline is not None and time.monotonic() > deadline:
                        self._abort(result, fields)
                    field_result = extractor.extract_field(image, f, aggressive, lang)
                    self._record(result, batch, field_result)

                logger.info(
                    "Page %d: %d/%d fields extracted",
                    page_number,
                    batch.fields_with_text,
                    len(fields_on_page),
                )

        logger.info(
            "Extraction complete: %d/%d fields extracted across %d pages",
            result.fields_with_text,
            result.fields_attempted,
            result.pages_with_data,
        )
        return result

    def extract_template(
        self,
        template: Template,
        source: DocumentSource,
        language: str | None = None,
        aggressive: bool | None = None,
        timeout_s: float | None = None,
    ) -> TemplateExtractionResult:
        """Load a document (image or PDF, path or URL) and extract a template.

        Raises:
            PreprocessingFailure: If the document cannot be loaded.
            ExtractionTimeout: If the deadline passes.
        """
        pages = load_page_images(
            source, self.pdf_handler, self.config.ocr.download_timeout
        )
        logger.info(
            "Template '%s': %d fields, document has %d pages",
            template.name,
            len(template.fields),
            len(pages),
        )
        return self.extract(
            pages,
            template.fields,
            language=language,
            aggressive=aggressive,
            timeout_s=timeout_s,
            template_id=template.template_id,
        )

    @staticmethod
    def _record(
        result: TemplateExtractionResult,
        batch: PageExtractionBatch,
        field_result: FieldExtractionResult,
    ) -> None:
        batch.results.append(field_result)
        result.results.append(field_result)

    @staticmethod
    def _abort(
        result: TemplateExtractionResult, fields: Sequence[TemplateField]
    ) -> None:
        attempted = {r.field_id for r in result.results}
        result.not_attempted = [
            f.field_id
            for f in fields
            if 1 <= f.page_number <= result.page_count and f.field_id not in attempted
        ]
        logger.warning(
            "Extraction deadline passed: %d attempted, %d not attempted",
            result.fields_attempted,
            len(result.not_attempted),
        )
        raise ExtractionTimeout(result)

    @staticmethod
    def _log_orphan_fields(fields: Sequence[TemplateField], page_count: int) -> None:
        orphans = [f.field_name for f in fields if f.page_number > page_count]
        if orphans:
            logger.info(
                "Skipping %d fields on pages beyond %d: %s",
                len(orphans),
                page_count,
                ", ".join(orphans),
            )


def _page_failure(field: TemplateField, exc: Exception) -> FieldExtractionResult:
    return FieldExtractionResult(
        field_id=field.field_id,
        field_name=field.field_name,
        raw_text=None,
        confidence=0,
        notes=f"Error: {exc}",
        page_number=field.page_number,
    )


def _as_array(page: np.ndarray | bytes) -> np.ndarray:
    if isinstance(page, np.ndarray):
        return page
    return decode_image(page)
