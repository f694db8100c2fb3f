"""Tests for logging configuration."""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from bletracker.utils.logger import configure_logging


class TestConfigureLogging:
    def teardown_method(self):
        """Clean up logger handlers after each test."""
        logging.getLogger("bletracker").handlers.clear()

    def test_creates_logger_with_specified_level(self):
        configure_logging(level="DEBUG", log_file=None)
        assert logging.getLogger("bletracker").level == logging.DEBUG

    def test_info_level_by_default(self):
        configure_logging(log_file=None)
        assert logging.getLogger("bletracker").level == logging.INFO

    def test_console_only_without_log_file(self):
        configure_logging(log_file=None)
        handlers = logging.getLogger("bletracker").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_attaches_rotating_file_handler(self, tmp_path):
        configure_logging(log_file=str(tmp_path / "test.log"))
        handler_types = {type(h) for h in logging.getLogger("bletracker").handlers}
        assert TimedRotatingFileHandler in handler_types

    def test_clears_existing_handlers_on_repeated_calls(self):
        configure_logging(log_file=None)
        configure_logging(log_file=None)
        assert len(logging.getLogger("bletracker").handlers) == 1

    def test_invalid_level_raises_value_error(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="VERBOSE")

    def test_creates_parent_directories_for_log_file(self, tmp_path):
        log_file = tmp_path / "subdir" / "nested" / "test.log"
        configure_logging(log_file=str(log_file))
        assert Path(log_file).parent.exists()

    def test_noisy_loggers_are_quietened(self):
        configure_logging(log_file=None)
        assert logging.getLogger("httpx").level == logging.WARNING
