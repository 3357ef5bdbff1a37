"""PDF to image conversion for multi-page templates.

Renders each PDF page to a numpy array so template fields on page N can
be cropped from the N-th image.
"""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError

from fieldocr.errors import ConfigurationError, PreprocessingFailure
from fieldocr.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Handles PDF to image conversion for OCR processing.

    Args:
        dpi: Resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Convert a PDF to a list of images, one per page.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            List of images as numpy arrays (RGB format), in page order.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            ConfigurationError: If the Poppler utilities are not installed.
            PreprocessingFailure: If the PDF cannot be rendered.
        """
        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                pil_images = convert_from_path(str(path), dpi=self.dpi)
            else:
                pil_images = convert_from_bytes(pdf_source, dpi=self.dpi)
        except FileNotFoundError:
            raise
        except PDFInfoNotInstalledError as exc:
            raise ConfigurationError(f"PDF rendering unavailable: {exc}") from exc
        except Exception as exc:
            raise PreprocessingFailure(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
