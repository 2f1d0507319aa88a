"""Tests for configuration loading and validation."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from slipcheck.utils.config import (
    AmountConfig,
    AppConfig,
    MatchingConfig,
    OCRConfig,
    PreprocessingConfig,
    QueueConfig,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.enabled is True
        assert cfg.max_width == 1000
        assert cfg.pdf_dpi == 300
        assert cfg.grayscale is True
        assert cfg.normalize_contrast is True
        assert cfg.clahe_enabled is False

    def test_override(self) -> None:
        cfg = PreprocessingConfig(max_width=800, clahe_enabled=True)
        assert cfg.max_width == 800
        assert cfg.clahe_enabled is True

    def test_rejects_non_positive_width(self) -> None:
        with pytest.raises(ValidationError):
            PreprocessingConfig(max_width=0)


class TestOCRConfig:
    """Tests for OCRConfig defaults."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.tesseract_cmd is None
        assert cfg.timeout_seconds == 60.0


class TestPolicyDefaults:
    """The match threshold and amount tolerance default to one unit."""

    def test_matching_defaults(self) -> None:
        cfg = MatchingConfig()
        assert cfg.max_distance == 1
        assert cfg.fold_confusables is True

    def test_amount_defaults(self) -> None:
        cfg = AmountConfig()
        assert cfg.tolerance == Decimal("1")
        assert cfg.year_min == 1900
        assert cfg.year_max == 2099

    def test_queue_defaults_to_serial(self) -> None:
        assert QueueConfig().concurrency == 1

    def test_queue_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            QueueConfig(concurrency=0)


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert cfg.store.database_path == "data/slips.db"
        assert cfg.log_level == "INFO"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_shipped_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml")
        assert cfg.matching.max_distance == 1
        assert cfg.amount.tolerance == Decimal("1")
        assert cfg.queue.concurrency == 1

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert cfg == AppConfig()

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "ocr": {"default_lang": "div", "timeout_seconds": 5},
            "amount": {"tolerance": "0.5"},
            "queue": {"concurrency": 3},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.ocr.default_lang == "div"
        assert cfg.ocr.timeout_seconds == 5.0
        assert cfg.amount.tolerance == Decimal("0.5")
        assert cfg.queue.concurrency == 3
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert isinstance(load_config(config_file), AppConfig)
