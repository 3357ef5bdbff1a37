"""Tests for the error taxonomy."""

from fieldocr.errors import (
    ConfigurationError,
    ExtractionTimeout,
    FieldOcrError,
    InvalidRegionError,
    OcrEngineFailure,
    PreprocessingFailure,
    TemplateError,
)
from fieldocr.extraction.models import TemplateExtractionResult


class TestErrors:
    """Tests for error messages and the shared base class."""

    def test_common_base(self) -> None:
        for exc_type in (
            ConfigurationError,
            InvalidRegionError,
            OcrEngineFailure,
            PreprocessingFailure,
            TemplateError,
        ):
            assert issubclass(exc_type, FieldOcrError)

    def test_invalid_region_keeps_geometry(self) -> None:
        exc = InvalidRegionError(10, 20, 0, 5)
        assert (exc.left, exc.top, exc.width, exc.height) == (10, 20, 0, 5)
        assert "width=0" in str(exc)

    def test_engine_failure_message(self) -> None:
        cause = ConnectionError("refused")
        exc = OcrEngineFailure("ocrspace", cause)
        assert exc.engine == "ocrspace"
        assert exc.cause is cause
        assert str(exc) == "ocrspace OCR failed: refused"

    def test_timeout_carries_partial(self) -> None:
        partial = TemplateExtractionResult(
            template_id="t1", page_count=2, not_attempted=["b", "c"]
        )
        exc = ExtractionTimeout(partial)
        assert exc.partial is partial
        assert "0 fields" in str(exc)
        assert "2 not attempted" in str(exc)
