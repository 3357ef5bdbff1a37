"""Document loading and whole-page OCR.

Loads images or PDFs, from disk or an http(s) URL, into page arrays for
template extraction, and runs the full-page OCR path, where each page is
recognized as a whole and its word/line/paragraph structure is rebuilt.
"""

import io
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import cv2
import numpy as np
import requests
from PIL import Image, ImageSequence, UnidentifiedImageError

from fieldocr.errors import PreprocessingFailure
from fieldocr.preprocessing.pipeline import PreprocessingPipeline, encode_png
from fieldocr.utils.config import AppConfig
from fieldocr.utils.logger import get_logger

from .base import OCREngine, UnifiedOCRResult
from .factory import create_engine
from .pdf_handler import PDFHandler

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


@dataclass
class PageResult:
    """OCR result for a single document page."""

    page_number: int
    ocr_result: UnifiedOCRResult


@dataclass
class DocumentResult:
    """Complete full-page OCR results for a document."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str


DocumentSource = Path | str | bytes


def is_url(source: object) -> bool:
    """Whether ``source`` is an http(s) URL string."""
    return isinstance(source, str) and urlparse(source).scheme in ("http", "https")


def document_name(source: DocumentSource) -> str:
    """Short display name for a document path or URL."""
    if isinstance(source, bytes):
        return "document"
    if is_url(source):
        return Path(urlparse(source).path).name or source
    return Path(source).name


def fetch_document(url: str, timeout: float = 30.0) -> bytes:
    """Download a document over HTTP.

    Args:
        url: http(s) URL of an image or PDF.
        timeout: Request timeout in seconds.

    Returns:
        Raw response body.

    Raises:
        PreprocessingFailure: If the download fails or returns an HTTP error.
    """
    logger.info("Downloading document from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise PreprocessingFailure(f"Could not download {url}: {exc}") from exc
    return response.content


def _is_pdf(source: Path | bytes) -> bool:
    if isinstance(source, bytes):
        return source[:4] == b"%PDF"
    return Path(source).suffix.lower() == ".pdf"


def _rgb_to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    return image


def load_page_images(
    source: DocumentSource,
    pdf_handler: PDFHandler | None = None,
    download_timeout: float = 30.0,
) -> list[np.ndarray]:
    """Load a document into page images, first page first.

    Supports PDF files and common image formats (PNG, JPEG, TIFF, BMP,
    WebP). Each frame of a multi-page TIFF becomes its own page. Images
    come back in BGR order, matching OpenCV.

    Args:
        source: Path, http(s) URL, or raw bytes of the document.
        pdf_handler: Renderer for PDF input.
        download_timeout: Request timeout for URL input, in seconds.

    Returns:
        One array per page.

    Raises:
        FileNotFoundError: If a path does not exist.
        PreprocessingFailure: If the document cannot be downloaded or decoded.
    """
    if is_url(source):
        source = fetch_document(source, download_timeout)
    elif isinstance(source, str):
        source = Path(source)

    if _is_pdf(source):
        handler = pdf_handler or PDFHandler()
        return [_rgb_to_bgr(page) for page in handler.pdf_to_images(source)]

    try:
        if isinstance(source, bytes):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(Path(source))
        with img:
            pages = [
                np.array(frame.convert("RGB"))
                for frame in ImageSequence.Iterator(img)
            ]
    except FileNotFoundError:
        raise
    except (UnidentifiedImageError, OSError) as exc:
        raise PreprocessingFailure(f"Unsupported or corrupt image: {exc}") from exc
    if len(pages) > 1:
        logger.info("Loaded %d image frames as pages", len(pages))
    return [_rgb_to_bgr(page) for page in pages]


class DocumentProcessor:
    """Full-page OCR over every page of a document.

    Args:
        config: Application configuration object.
        engine_factory: Builds a fresh OCR engine for each document.
            Defaults to the engine named in ``config.ocr``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        engine_factory: Callable[[], OCREngine] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.pdf_handler = PDFHandler(dpi=self.config.ocr.pdf_dpi)
        self.preprocessing = PreprocessingPipeline(self.config.preprocessing)
        self.engine_factory = engine_factory or (
            lambda: create_engine(self.config.ocr, self.config.structure)
        )

    def process(
        self,
        source: DocumentSource,
        filename: str = "document",
        language: str | None = None,
        preprocess: bool = True,
    ) -> DocumentResult:
        """Recognize every page of a document.

        Args:
            source: Path or http(s) URL of a document, or raw file bytes.
            filename: Display name for the source document.
            language: OCR language code; configured default when ``None``.
            preprocess: Apply the aggressive preprocessing profile first.

        Returns:
            Per-page OCR results with rebuilt structure.

        Raises:
            PreprocessingFailure: If the document cannot be decoded.
            OcrEngineFailure: If recognition of any page fails.
        """
        logger.info("Processing document: %s", filename)
        images = load_page_images(
            source, self.pdf_handler, self.config.ocr.download_timeout
        )
        lang = language or self.config.ocr.default_lang
        pages: list[PageResult] = []

        with self.engine_factory() as engine:
            for page_number, image in enumerate(images, start=1):
                if preprocess:
                    data, _ = self.preprocessing.process(image, aggressive=True)
                else:
                    data = encode_png(image)
                ocr_result = engine.recognize(data, lang, structure=True)
                pages.append(PageResult(page_number=page_number, ocr_result=ocr_result))

        combined_text = PAGE_BREAK.join(p.ocr_result.text for p in pages)
        logger.info("Processed %d pages from %s", len(pages), filename)
        return DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=combined_text,
        )
