"""Tests for logging configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from quire.config import LoggingConfig, configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    """Restore the quire logger after each test."""
    logger = logging.getLogger("quire")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_level(self) -> None:
        """Test the package logger level follows the config."""
        logger = configure_logging(LoggingConfig(level="WARNING", console=False))

        assert logger.name == "quire"
        assert logger.level == logging.WARNING
        assert logger.handlers == []

    def test_console_handler(self) -> None:
        """Test a stream handler is installed for console output."""
        logger = configure_logging(LoggingConfig())

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_repeated_calls_do_not_duplicate(self) -> None:
        """Test reconfiguring replaces earlier handlers."""
        configure_logging(LoggingConfig())
        logger = configure_logging(LoggingConfig())

        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path: Path) -> None:
        """Test records are written to the configured file."""
        log_file = tmp_path / "logs" / "quire.log"
        logger = configure_logging(
            LoggingConfig(level="INFO", console=False, file=log_file)
        )

        logging.getLogger("quire.engines").info("study initialized")
        for handler in logger.handlers:
            handler.flush()

        assert "study initialized" in log_file.read_text()
