"""Logging configuration for Spyglass.

Records go to a rotating file next to the index and, at WARNING and above, to
the console.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from spyglass.config.models import LoggingSettings

LOG_FILENAME = "spyglass.log"
_HANDLER_MARKER = "_spyglass_handler"


def configure_logging(settings: LoggingSettings, log_dir: Path) -> logging.Logger:
    """Install file and console handlers on the ``spyglass`` logger.

    Handlers installed by a previous call are replaced, so calling this more
    than once does not duplicate output.

    Args:
        settings: Level and rotation settings.
        log_dir: Directory that receives ``spyglass.log``.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger("spyglass")
    logger.setLevel(getattr(logging, settings.level.upper(), logging.WARNING))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    _install(logger, console_handler)

    try:
        log_dir = log_dir.expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / LOG_FILENAME,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("File logging disabled: %s", exc)
        return logger

    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    _install(logger, file_handler)
    return logger


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)


__all__ = ["configure_logging", "LOG_FILENAME"]
