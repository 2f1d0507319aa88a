"""Configuration management for the slip verification service.

Loads and validates YAML configuration with sensible defaults
for preprocessing, OCR, matching, amount extraction and queueing.
"""

import logging
from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for slip image preprocessing."""

    enabled: bool = True
    max_width: int = Field(default=1000, gt=0)
    pdf_dpi: int = Field(default=300, gt=0)
    grayscale: bool = True
    normalize_contrast: bool = True
    clahe_enabled: bool = False
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8


class OCRConfig(BaseModel):
    """Configuration for Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    timeout_seconds: float = Field(default=60.0, gt=0)


class MatchingConfig(BaseModel):
    """Configuration for transaction id matching."""

    max_distance: int = Field(default=1, ge=0)
    fold_confusables: bool = True


class AmountConfig(BaseModel):
    """Configuration for monetary amount extraction and comparison."""

    tolerance: Decimal = Decimal("1")
    ceiling: Decimal = Decimal("10000000")
    year_min: int = 1900
    year_max: int = 2099


class QueueConfig(BaseModel):
    """Configuration for the slip processing queue."""

    concurrency: int = Field(default=1, ge=1)


class StoreConfig(BaseModel):
    """Configuration for the SQLite slip store."""

    database_path: str = "data/slips.db"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    amount: AmountConfig = Field(default_factory=AmountConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log_level: str = "INFO"


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
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
