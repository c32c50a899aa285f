"""Shared logging utilities with secret redaction."""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Pattern

from ..domain.configuration import LoggingSettings

LOGGER_NAME = "format_converter"


class RedactingFormatter(logging.Formatter):
    """Formatter that masks credentials that leak into log messages."""

    def __init__(self, fmt: str, patterns: Iterable[str]) -> None:
        super().__init__(fmt)
        self._compiled_patterns: Iterable[Pattern[str]] = [re.compile(pattern) for pattern in patterns]

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - doc inherited
        message = super().format(record)
        for pattern in self._compiled_patterns:
            message = pattern.sub("[REDACTED]", message)
        return message


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logger(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """Attach a redacting stream handler to the package logger (once)."""
    settings = settings or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.level.upper(), logging.WARNING))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(RedactingFormatter(settings.format, settings.redaction_patterns))
    logger.addHandler(handler)
    return logger
