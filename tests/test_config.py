"""Tests for configuration loading and validation."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from billscan.utils.config import (
    AppConfig,
    ExtractionConfig,
    OCRConfig,
    PreprocessingConfig,
    ProcessingConfig,
    load_config,
)


class TestProcessingConfig:
    """Tests for ProcessingConfig defaults, limits and immutability."""

    def test_defaults(self) -> None:
        cfg = ProcessingConfig()
        assert cfg.max_file_size == 10 * 1024 * 1024
        assert cfg.allowed_media_types == frozenset(
            {"image/jpeg", "image/png", "image/webp", "application/pdf"}
        )
        assert cfg.max_width == 1920
        assert cfg.max_height == 1080
        assert cfg.image_quality == 0.8

    def test_list_of_media_types_accepted(self) -> None:
        cfg = ProcessingConfig(allowed_media_types=["image/png"])
        assert cfg.allowed_media_types == frozenset({"image/png"})

    def test_media_types_normalized(self) -> None:
        cfg = ProcessingConfig(
            allowed_media_types=["Image/JPEG", " application/PDF ", "image/png; q=1"]
        )
        assert cfg.allowed_media_types == frozenset(
            {"image/jpeg", "application/pdf", "image/png"}
        )

    def test_frozen(self) -> None:
        cfg = ProcessingConfig()
        with pytest.raises(PydanticValidationError):
            cfg.max_width = 10

    def test_quality_out_of_range_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProcessingConfig(image_quality=1.5)

    def test_non_positive_size_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProcessingConfig(max_file_size=0)


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.pdf_dpi == 300
        assert cfg.pdf_max_pages == 5
        assert cfg.tesseract_cmd is None

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(default_lang="hin", psm=6)
        assert cfg.default_lang == "hin"
        assert cfg.psm == 6


class TestPreprocessingConfig:
    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.enabled is True
        assert cfg.denoise_method == "bilateral"
        assert cfg.binarize_method == "adaptive"
        assert cfg.contrast_enabled is False


class TestExtractionConfig:
    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.default_tax_rate == Decimal("18")
        assert cfg.dayfirst is True
        assert cfg.fallback_item_name == "Extracted Item"


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.processing, ProcessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.extraction, ExtractionConfig)
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(
            processing=ProcessingConfig(max_width=800),
            log_level="DEBUG",
        )
        assert cfg.processing.max_width == 800
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_shipped_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.default_lang == "eng"
        assert "application/pdf" in cfg.processing.allowed_media_types
        assert cfg.extraction.default_tax_rate == Decimal("18")

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert cfg == AppConfig()

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "processing": {"max_file_size": 1024, "allowed_media_types": ["image/png"]},
            "ocr": {"default_lang": "deu", "psm": 6},
            "extraction": {"default_tax_rate": "5", "dayfirst": False},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.processing.max_file_size == 1024
        assert cfg.processing.allowed_media_types == frozenset({"image/png"})
        assert cfg.ocr.default_lang == "deu"
        assert cfg.ocr.psm == 6
        assert cfg.extraction.default_tax_rate == Decimal("5")
        assert cfg.extraction.dayfirst is False
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert isinstance(cfg, AppConfig)
