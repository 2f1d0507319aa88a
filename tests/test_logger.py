"""Tests for the logging setup module."""

import logging

from slipcheck.utils.logger import get_logger, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()
        try:
            setup_logging("DEBUG")
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved

    def test_setup_idempotent(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()
        try:
            setup_logging("INFO")
            count = len(root.handlers)
            setup_logging("INFO")
            assert len(root.handlers) == count
        finally:
            root.handlers[:] = saved

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()
        try:
            setup_logging("NONEXISTENT")
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("slipcheck.test")
        assert logger.name == "slipcheck.test"
        assert isinstance(logger, logging.Logger)
