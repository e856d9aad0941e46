"""Configuration for the bill extraction pipeline.

Settings are grouped per stage (intake, OCR, image enhancement, field
extraction) and loaded from YAML. Every section is immutable once built:
a pipeline receives its configuration at construction and never changes
it while serving requests.
"""

import logging
from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from billscan.models import normalize_media_type

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "application/pdf"}
)


class ProcessingConfig(BaseModel):
    """Limits and normalization targets applied to uploaded documents."""

    model_config = ConfigDict(frozen=True)

    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)
    allowed_media_types: frozenset[str] = DEFAULT_MEDIA_TYPES
    max_width: int = Field(default=1920, gt=0)
    max_height: int = Field(default=1080, gt=0)
    image_quality: float = Field(default=0.8, gt=0.0, le=1.0)

    @field_validator("allowed_media_types", mode="before")
    @classmethod
    def _normalize_media_types(cls, value: object) -> object:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(
                normalize_media_type(v) if isinstance(v, str) else v for v in value
            )
        return value


class OCRConfig(BaseModel):
    """Configuration for the Tesseract recognition worker."""

    model_config = ConfigDict(frozen=True)

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    pdf_max_pages: int = Field(default=5, gt=0)


class PreprocessingConfig(BaseModel):
    """Image enhancement applied right before recognition."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    denoise_enabled: bool = True
    denoise_method: str = "bilateral"
    contrast_enabled: bool = False
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    binarize_enabled: bool = True
    binarize_method: str = "adaptive"


class ExtractionConfig(BaseModel):
    """Defaults used when the bill text leaves a value unstated."""

    model_config = ConfigDict(frozen=True)

    default_tax_rate: Decimal = Decimal("18")
    dayfirst: bool = True
    fallback_item_name: str = "Extracted Item"


class AppConfig(BaseModel):
    """Top-level configuration for a pipeline instance."""

    model_config = ConfigDict(frozen=True)

    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration. A missing or empty file
        yields the defaults.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
