"""Remote OCR backend using the hosted OCR.space API.

The image is posted base64-encoded with the text overlay and orientation
detection enabled. The overlay gives per-word boxes grouped by line; the
service reports no confidence, so a fixed nominal value is used.
"""

import base64

import requests

from fieldocr.errors import ConfigurationError, OcrEngineFailure
from fieldocr.utils.config import OCRSpaceConfig, StructureConfig
from fieldocr.utils.logger import get_logger

from .base import (
    BoundingBox,
    GeometrySource,
    OCREngine,
    OCRLine,
    OCRWord,
    UnifiedOCRResult,
)
from .layout_analyzer import LayoutAnalyzer, union_bbox

logger = get_logger(__name__)


def _px(value: object) -> int:
    """Overlay coordinates arrive as ints, floats, or numeric strings."""
    return int(float(value or 0))


class OCRSpaceEngine(OCREngine):
    """Client for the OCR.space ``parse/image`` endpoint.

    Args:
        config: API endpoint, key, engine mode, and timeout.
        default_lang: Language used when a call does not specify one.
        structure_config: Thresholds for rebuilding paragraph structure.

    Raises:
        ConfigurationError: If no API key is configured.
    """

    name = "ocrspace"

    def __init__(
        self,
        config: OCRSpaceConfig | None = None,
        default_lang: str = "eng",
        structure_config: StructureConfig | None = None,
    ) -> None:
        super().__init__()
        self.config = config or OCRSpaceConfig()
        if not self.config.api_key:
            raise ConfigurationError("OCR.space API key is not configured")
        self.default_lang = default_lang
        self.layout_analyzer = LayoutAnalyzer(structure_config)
        self.session: requests.Session | None = None

    def open(self) -> None:
        self.session = requests.Session()
        super().open()

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
        super().close()

    def recognize(
        self, image: bytes, language: str | None = None, structure: bool = True
    ) -> UnifiedOCRResult:
        """Send an image to OCR.space and normalize the response.

        Args:
            image: Encoded PNG bytes.
            language: OCR.space language code (three letters, e.g. ``"eng"``).
            structure: Rebuild words, lines, and paragraphs from the overlay.

        Returns:
            Normalized OCR result.

        Raises:
            OcrEngineFailure: On network errors, HTTP errors, a response
                flagged as failed by the service, or a malformed body.
        """
        lang = language or self.default_lang
        encoded = base64.b64encode(image).decode("ascii")
        payload = {
            "apikey": self.config.api_key,
            "base64Image": f"data:image/png;base64,{encoded}",
            "language": lang,
            "isOverlayRequired": "true",
            "detectOrientation": "true",
            "scale": "true",
            "OCREngine": str(self.config.engine_mode),
        }

        session = self.session or requests.Session()
        try:
            response = session.post(
                self.config.api_url, data=payload, timeout=self.config.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise OcrEngineFailure(self.name, exc) from exc
        finally:
            if session is not self.session:
                session.close()

        if not isinstance(data, dict):
            raise OcrEngineFailure(
                self.name, RuntimeError(str(data) or "Unexpected response body")
            )

        parsed = self._first_parsed_result(data)
        result = UnifiedOCRResult(
            text=parsed.get("ParsedText") or "",
            confidence=self.config.confidence,
            engine=self.name,
            language=lang,
        )
        if structure:
            try:
                self._attach_structure(result, parsed.get("TextOverlay") or {})
            except (TypeError, ValueError, AttributeError) as exc:
                raise OcrEngineFailure(
                    self.name, ValueError(f"Malformed text overlay: {exc}")
                ) from exc

        logger.info(
            "OCR.space extracted %d words, %d lines",
            len(result.words),
            len(result.lines),
        )
        return result

    def _first_parsed_result(self, data: dict) -> dict:
        results = data.get("ParsedResults") or []
        if data.get("IsErroredOnProcessing") or not results:
            message = data.get("ErrorMessage") or "OCR.space processing failed"
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            raise OcrEngineFailure(self.name, RuntimeError(message))
        if not isinstance(results[0], dict):
            raise OcrEngineFailure(self.name, RuntimeError("Malformed parsed result"))
        return results[0]

    def _attach_structure(self, result: UnifiedOCRResult, overlay: dict) -> None:
        conf = self.config.confidence
        words: list[OCRWord] = []
        lines: list[OCRLine] = []

        for raw_line in overlay.get("Lines") or []:
            line_words = [
                OCRWord(
                    text=w.get("WordText") or "",
                    confidence=conf,
                    bbox=BoundingBox(
                        x=_px(w.get("Left")),
                        y=_px(w.get("Top")),
                        width=_px(w.get("Width")),
                        height=_px(w.get("Height")),
                    ),
                )
                for w in raw_line.get("Words") or []
            ]
            if line_words:
                bbox = union_bbox([w.bbox for w in line_words])
            else:
                bbox = BoundingBox(
                    x=0,
                    y=_px(raw_line.get("MinTop")),
                    width=0,
                    height=_px(raw_line.get("MaxHeight")),
                )
            lines.append(
                OCRLine(
                    text=raw_line.get("LineText") or "",
                    confidence=conf,
                    bbox=bbox,
                    words=line_words,
                )
            )
            words.extend(line_words)

        if words:
            result.geometry_source = GeometrySource.BACKEND
            paragraphs = self.layout_analyzer.group_paragraphs(lines)
        elif result.text.strip():
            logger.warning("OCR.space overlay empty, synthesizing geometry from text")
            words, structure = self.layout_analyzer.synthesize(result.text, conf)
            lines, paragraphs = structure.lines, structure.paragraphs
            result.geometry_source = GeometrySource.SYNTHETIC
        else:
            return

        result.words = words
        result.lines = lines
        result.paragraphs = paragraphs
        result.blocks = list(paragraphs)
