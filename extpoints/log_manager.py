"""Logging configuration for applications embedding extension points."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from extpoints.config import Settings

LOGGER_NAME = "extpoints"
LOG_FORMAT = (
    "[%(asctime)s] [%(levelname)-8s] [%(filename)-16s] "
    "[%(funcName)-20s] [%(lineno)-4d] %(message)s"
)

# ANSI color codes for log levels
LOG_COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[41m",  # Red background
}
RESET_COLOR = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI color codes for log levels."""

    def format(self, record):
        color = LOG_COLORS.get(record.levelname, "")
        formatted = super().format(record)
        return f"{color}{formatted}{RESET_COLOR}"


def build_logging_config(level: str = "INFO", log_file: Optional[Path] = None) -> Dict[str, Any]:
    """Return the ``dictConfig`` dictionary for the ``extpoints`` logger."""

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console_formatter",
        },
    }
    if log_file is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": str(log_file),
            "level": "DEBUG",
            "mode": "a",
            "formatter": "file_formatter",
            "encoding": "utf8",
            "delay": True,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console_formatter": {
                "()": ColoredFormatter,
                "format": LOG_FORMAT,
            },
            "file_formatter": {
                "format": LOG_FORMAT,
            },
        },
        "handlers": handlers,
        "loggers": {
            LOGGER_NAME: {
                "handlers": list(handlers),
                "level": "DEBUG" if log_file is not None else level,
                "propagate": False,
            },
        },
    }


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Install handlers for the ``extpoints`` logger and return it.

    Library modules only create loggers; handlers are attached here, once the
    embedding application has decided on its settings.
    """

    settings = settings or Settings()
    log_file = Path(settings.log_file) if settings.log_file else None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(settings.log_level, log_file))
    return logging.getLogger(LOGGER_NAME)
