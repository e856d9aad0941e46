"""Tests for the logging setup module."""

import logging

import pytest

from billscan.utils.logger import LOG_FORMAT, get_logger, setup_logging


@pytest.fixture
def root_logger():
    """Yield the root logger and restore its handlers and level afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self, root_logger: logging.Logger) -> None:
        root_logger.handlers.clear()

        setup_logging("DEBUG")
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.DEBUG
        assert root_logger.handlers[0].formatter._fmt == LOG_FORMAT

    def test_setup_idempotent(self, root_logger: logging.Logger) -> None:
        root_logger.handlers.clear()

        setup_logging("INFO")
        count = len(root_logger.handlers)
        setup_logging("INFO")
        assert len(root_logger.handlers) == count

    def test_setup_invalid_level_defaults_to_info(self, root_logger: logging.Logger) -> None:
        root_logger.handlers.clear()

        setup_logging("NONEXISTENT")
        assert root_logger.level == logging.INFO

    def test_existing_handlers_left_alone(self, root_logger: logging.Logger) -> None:
        root_logger.handlers.clear()
        existing = logging.NullHandler()
        root_logger.addHandler(existing)

        setup_logging("DEBUG")
        assert root_logger.handlers == [existing]


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("billscan.test")
        assert logger.name == "billscan.test"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("billscan.same") is get_logger("billscan.same")
