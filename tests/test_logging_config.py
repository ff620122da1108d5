"""Tests for logging setup."""

import logging

import pytest

from webscraper.logging_config import NOISY_LOGGERS, get_logger, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_applied(self, restore_logging):
        """Test the root level follows the argument."""
        setup_logging(level="debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self, restore_logging):
        """Test an unknown level name falls back to INFO."""
        setup_logging(level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_log_file(self, tmp_path, restore_logging):
        """Test records are also written to the log file."""
        log_file = tmp_path / "logs" / "scrape.log"

        setup_logging(level="INFO", log_file=str(log_file))
        get_logger("webscraper.test").info("crawl started")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "crawl started" in log_file.read_text()

    def test_third_party_loggers_quieted(self, restore_logging):
        """Test library loggers are raised to WARNING."""
        setup_logging(level="DEBUG")

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
