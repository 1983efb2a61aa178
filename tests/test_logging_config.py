"""Tests for logging configuration."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from spyglass.config.models import LoggingSettings
from spyglass.logging_config import LOG_FILENAME, configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("spyglass")
    original_level = logger.level
    original_handlers = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in original_handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(original_level)


def test_configure_logging_writes_rotating_file(tmp_path: Path, package_logger) -> None:
    logger = configure_logging(LoggingSettings(level="info", backup_count=2), tmp_path / "logs")

    assert logger is package_logger
    assert logger.level == logging.INFO
    file_handlers = [
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.handlers.RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    assert file_handlers[0].backupCount == 2

    logging.getLogger("spyglass.index.service").info("indexed %d entries", 3)
    file_handlers[0].flush()

    text = (tmp_path / "logs" / LOG_FILENAME).read_text(encoding="utf-8")
    assert "indexed 3 entries" in text
    assert "spyglass.index.service" in text


def test_configure_logging_replaces_previous_handlers(tmp_path: Path, package_logger) -> None:
    configure_logging(LoggingSettings(), tmp_path)
    first = len(package_logger.handlers)

    configure_logging(LoggingSettings(level="DEBUG"), tmp_path)

    assert len(package_logger.handlers) == first
    assert package_logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_warning(tmp_path: Path, package_logger) -> None:
    configure_logging(LoggingSettings(level="chatty"), tmp_path)

    assert package_logger.level == logging.WARNING


def test_unwritable_log_dir_keeps_console_logging(tmp_path: Path, package_logger) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    configure_logging(LoggingSettings(), blocker / "logs")

    assert not any(
        isinstance(handler, logging.handlers.RotatingFileHandler)
        for handler in package_logger.handlers
    )
    assert any(isinstance(handler, logging.StreamHandler) for handler in package_logger.handlers)
