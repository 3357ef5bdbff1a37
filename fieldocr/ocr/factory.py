"""Selection of the configured OCR backend."""

from fieldocr.errors import ConfigurationError
from fieldocr.utils.config import SUPPORTED_ENGINES, OCRConfig, StructureConfig
from fieldocr.utils.logger import get_logger

from .base import OCREngine
from .ocrspace_engine import OCRSpaceEngine
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)


def create_engine(
    config: OCRConfig | None = None,
    structure_config: StructureConfig | None = None,
) -> OCREngine:
    """Build the OCR engine named by ``config.engine``.

    The returned engine is not opened; use it as a context manager.

    Args:
        config: OCR configuration.
        structure_config: Thresholds for rebuilding text structure.

    Returns:
        A :class:`TesseractEngine` or :class:`OCRSpaceEngine`.

    Raises:
        ConfigurationError: If the engine name is not supported.
    """
    config = config or OCRConfig()
    name = config.engine.lower()

    if name == "tesseract":
        engine: OCREngine = TesseractEngine(config, structure_config)
    elif name == "ocrspace":
        engine = OCRSpaceEngine(config.ocrspace, config.default_lang, structure_config)
    else:
        raise ConfigurationError(
            f"Unsupported OCR engine '{config.engine}', "
            f"expected one of: {', '.join(SUPPORTED_ENGINES)}"
        )

    logger.debug("Created %s OCR engine", engine.name)
    return engine
