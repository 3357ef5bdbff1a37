"""Configuration management for the template field extraction engine.

Loads and validates YAML configuration with sensible defaults for
preprocessing profiles, OCR engine selection, structure building, and
field extraction thresholds.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SUPPORTED_ENGINES = ("tesseract", "ocrspace")


class PreprocessingProfile(BaseModel):
    """One named set of image transforms applied before OCR."""

    target_width: int = 3000
    grayscale: bool = True
    normalize: bool = True
    sharpen_sigma: float = 2.0
    sharpen_amount: float = 1.5
    contrast_gain: float | None = 1.8
    median_kernel: int = 3
    binarize_threshold: int | None = 140


def _light_profile() -> PreprocessingProfile:
    return PreprocessingProfile(
        target_width=2500,
        grayscale=False,
        sharpen_sigma=1.0,
        sharpen_amount=1.0,
        contrast_gain=None,
        median_kernel=0,
        binarize_threshold=None,
    )


class PreprocessingConfig(BaseModel):
    """Aggressive and light preprocessing profiles."""

    aggressive: PreprocessingProfile = Field(default_factory=PreprocessingProfile)
    light: PreprocessingProfile = Field(default_factory=_light_profile)

    def profile(self, aggressive: bool) -> PreprocessingProfile:
        """Return the profile selected by the aggressiveness flag."""
        return self.aggressive if aggressive else self.light


class OCRSpaceConfig(BaseModel):
    """Configuration for the hosted OCR.space API."""

    api_url: str = "https://api.ocr.space/parse/image"
    api_key: str = "helloworld"
    engine_mode: int = 2
    timeout: float = 60.0
    confidence: int = 90


class OCRConfig(BaseModel):
    """Configuration for OCR engine selection and Tesseract parameters."""

    engine: str = "tesseract"
    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    oem: int = 1
    pdf_dpi: int = 300
    download_timeout: float = 30.0
    ocrspace: OCRSpaceConfig = Field(default_factory=OCRSpaceConfig)


class StructureConfig(BaseModel):
    """Thresholds and estimates used to rebuild word/line/paragraph structure."""

    line_threshold: int = 15
    paragraph_threshold: int = 40
    char_width: int = 8
    line_height: int = 20
    line_spacing: int = 25
    word_spacing: int = 5
    markup_confidence: int = 85


class ExtractionConfig(BaseModel):
    """Configuration for template field extraction and status classification."""

    good_threshold: float = 85.0
    low_confidence_threshold: float = 50.0
    aggressive: bool = True
    timeout_s: float | None = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    structure: StructureConfig = Field(default_factory=StructureConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply environment variable overrides on top of file settings.

    Args:
        config: Configuration loaded from file or defaults.

    Returns:
        The same configuration object, updated in place.
    """
    engine = os.environ.get("FIELDOCR_OCR_ENGINE")
    if engine:
        logger.info("OCR engine overridden from environment: %s", engine)
        config.ocr.engine = engine

    api_key = os.environ.get("OCRSPACE_API_KEY")
    if api_key:
        config.ocr.ocrspace.api_key = api_key
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return _apply_env_overrides(AppConfig(**raw))

    logger.info("No config file found at %s, using defaults", path)
    return _apply_env_overrides(AppConfig())
