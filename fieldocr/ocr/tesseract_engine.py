"""Local OCR backend built on Tesseract via pytesseract.

Runs automatic page segmentation with the LSTM recognizer. Word geometry
comes from Tesseract's hOCR output; when that yields nothing, boxes are
synthesized from the plain text.
"""

import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from fieldocr.errors import ConfigurationError, OcrEngineFailure
from fieldocr.utils.config import OCRConfig, StructureConfig
from fieldocr.utils.logger import get_logger
from fieldocr.utils.numeric import mean_rounded

from .base import GeometrySource, OCREngine, UnifiedOCRResult
from .hocr_parser import parse_hocr
from .layout_analyzer import LayoutAnalyzer

logger = get_logger(__name__)


class TesseractEngine(OCREngine):
    """Wrapper around the Tesseract binary.

    Args:
        config: OCR configuration (binary path, language, PSM, OEM).
        structure_config: Thresholds for rebuilding line/paragraph structure.
    """

    name = "tesseract"

    def __init__(
        self,
        config: OCRConfig | None = None,
        structure_config: StructureConfig | None = None,
    ) -> None:
        super().__init__()
        self.config = config or OCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd
        self.structure_config = structure_config or StructureConfig()
        self.layout_analyzer = LayoutAnalyzer(self.structure_config)

    @property
    def tesseract_config(self) -> str:
        return (
            f"--psm {self.config.psm} --oem {self.config.oem} "
            "-c preserve_interword_spaces=1"
        )

    def open(self) -> None:
        """Check that the Tesseract binary can be run.

        Raises:
            ConfigurationError: If Tesseract is not installed or not on PATH.
        """
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as exc:
            raise ConfigurationError(f"Tesseract is not available: {exc}") from exc
        logger.debug("Using Tesseract %s", version)
        super().open()

    def recognize(
        self, image: bytes, language: str | None = None, structure: bool = True
    ) -> UnifiedOCRResult:
        """Recognize text in an encoded image.

        Args:
            image: Encoded image bytes.
            language: Tesseract language code, e.g. ``"eng"`` or ``"eng+deu"``.
            structure: Also request hOCR and rebuild lines and paragraphs.

        Returns:
            Normalized OCR result with confidence 0-100.

        Raises:
            OcrEngineFailure: If Tesseract fails or the image is unreadable.
        """
        lang = language or self.config.default_lang
        config = self.tesseract_config

        try:
            pil_image = Image.open(io.BytesIO(image))
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
            hocr = (
                pytesseract.image_to_pdf_or_hocr(
                    pil_image, lang=lang, config=config, extension="hocr"
                )
                if structure
                else None
            )
        except (pytesseract.TesseractError, UnidentifiedImageError, OSError) as exc:
            raise OcrEngineFailure(self.name, exc) from exc

        confidence = self._mean_confidence(data)
        result = UnifiedOCRResult(
            text=self._text_from_data(data),
            confidence=confidence,
            engine=self.name,
            language=lang,
        )
        if structure:
            self._attach_structure(result, hocr)

        logger.info(
            "Tesseract extracted %d words, %d lines, confidence %d",
            len(result.words),
            len(result.lines),
            confidence,
        )
        return result

    def _mean_confidence(self, data: dict) -> int:
        """Average the confidences of recognized words, 0-100."""
        confs = [
            float(conf)
            for conf, word in zip(data.get("conf", []), data.get("text", []))
            if float(conf) > 0 and str(word).strip()
        ]
        return mean_rounded(confs)

    def _text_from_data(self, data: dict) -> str:
        """Rebuild plain text from word rows in reading order.

        Words on one line are joined by spaces, lines by newlines, and
        paragraphs by a blank line, as in Tesseract's own text output.
        """
        texts = data.get("text", [])
        columns = [
            data.get(key) or [0] * len(texts)
            for key in ("page_num", "block_num", "par_num", "line_num")
        ]
        paragraphs: dict[tuple, dict[int, list[str]]] = {}
        for page, block, par, line, word in zip(*columns, texts):
            word = str(word).strip()
            if word:
                lines = paragraphs.setdefault((page, block, par), {})
                lines.setdefault(line, []).append(word)

        return "\n\n".join(
            "\n".join(" ".join(words) for words in lines.values())
            for lines in paragraphs.values()
        )

    def _attach_structure(self, result: UnifiedOCRResult, hocr: bytes | None) -> None:
        words = parse_hocr(hocr, confidence=self.structure_config.markup_confidence)
        if words:
            structure = self.layout_analyzer.analyze(words)
            result.geometry_source = GeometrySource.MARKUP
        elif result.text.strip():
            logger.warning("hOCR produced no words, synthesizing geometry from text")
            words, structure = self.layout_analyzer.synthesize(
                result.text, result.confidence
            )
            result.geometry_source = GeometrySource.SYNTHETIC
        else:
            return

        result.words = words
        result.lines = structure.lines
        result.paragraphs = structure.paragraphs
        result.blocks = structure.blocks
