"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from fieldocr.utils.config import (
    AppConfig,
    ExtractionConfig,
    OCRConfig,
    PreprocessingConfig,
    StructureConfig,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for the aggressive and light preprocessing profiles."""

    def test_aggressive_defaults(self) -> None:
        profile = PreprocessingConfig().aggressive
        assert profile.target_width == 3000
        assert profile.grayscale is True
        assert profile.sharpen_sigma == 2.0
        assert profile.contrast_gain == 1.8
        assert profile.median_kernel == 3
        assert profile.binarize_threshold == 140

    def test_light_defaults(self) -> None:
        profile = PreprocessingConfig().light
        assert profile.target_width == 2500
        assert profile.grayscale is False
        assert profile.sharpen_sigma == 1.0
        assert profile.contrast_gain is None
        assert profile.binarize_threshold is None

    def test_profile_selection(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.profile(True) is cfg.aggressive
        assert cfg.profile(False) is cfg.light


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.engine == "tesseract"
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.oem == 1
        assert cfg.pdf_dpi == 300
        assert cfg.tesseract_cmd is None
        assert cfg.ocrspace.engine_mode == 2

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(default_lang="fra", psm=6)
        assert cfg.default_lang == "fra"
        assert cfg.psm == 6


class TestStructureConfig:
    """Tests for StructureConfig defaults."""

    def test_defaults(self) -> None:
        cfg = StructureConfig()
        assert cfg.line_threshold == 15
        assert cfg.paragraph_threshold == 40
        assert cfg.char_width == 8
        assert cfg.line_height == 20
        assert cfg.line_spacing == 25
        assert cfg.word_spacing == 5


class TestExtractionConfig:
    """Tests for ExtractionConfig defaults."""

    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.good_threshold == 85.0
        assert cfg.low_confidence_threshold == 50.0
        assert cfg.aggressive is True
        assert cfg.timeout_s is None


class TestLoadConfig:
    """Tests for the load_config function."""

    @pytest.fixture(autouse=True)
    def _clear_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FIELDOCR_OCR_ENGINE", raising=False)
        monkeypatch.delenv("OCRSPACE_API_KEY", raising=False)

    def test_load_from_project_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.engine == "tesseract"
        assert cfg.preprocessing.light.binarize_threshold is None

    def test_load_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(tmp_path / "nonexistent.yaml")
        assert cfg.log_level == "INFO"
        assert cfg.ocr.engine == "tesseract"

    def test_load_custom_config(self, tmp_path: Path) -> None:
        config_data = {
            "ocr": {"engine": "ocrspace", "default_lang": "deu"},
            "extraction": {"low_confidence_threshold": 60},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(yaml.dump(config_data))

        cfg = load_config(config_file)
        assert cfg.ocr.engine == "ocrspace"
        assert cfg.ocr.default_lang == "deu"
        assert cfg.extraction.low_confidence_threshold == 60
        assert cfg.log_level == "DEBUG"

    def test_empty_file_returns_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert cfg.structure.line_threshold == 15

    def test_env_overrides(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FIELDOCR_OCR_ENGINE", "ocrspace")
        monkeypatch.setenv("OCRSPACE_API_KEY", "secret")

        cfg = load_config(tmp_path / "nonexistent.yaml")
        assert cfg.ocr.engine == "ocrspace"
        assert cfg.ocr.ocrspace.api_key == "secret"
