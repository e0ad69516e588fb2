"""Setting up the package's logging from the log level setting."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from tmcatalog.config import KEY_LOG_LEVEL, LOG_LEVEL_OFF, Settings

LOGGER_NAME = "tmcatalog"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class DefaultLogHandler(logging.StreamHandler):
    """Writes log records as text to standard error."""

    def __init__(self, level: int) -> None:
        super().__init__(sys.stderr)
        self.setLevel(level)
        self.setFormatter(
            logging.Formatter("time=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s")
        )


class DiscardLogHandler(logging.Handler):
    """Drops every log record."""

    def __init__(self, level: int) -> None:
        super().__init__(level)

    def emit(self, record: logging.LogRecord) -> None:
        pass


def init_logging(settings: Optional[Settings] = None) -> logging.Handler:
    """Configure the package logger from the log level setting and return its handler.

    An empty level or 'off' discards all logs; an unknown level means info.
    """
    if settings is None:
        settings = Settings()
    log_level = settings.get(KEY_LOG_LEVEL) or ""
    level = logging.ERROR
    enabled = log_level not in ("", LOG_LEVEL_OFF)
    if enabled:
        level = _LEVELS.get(str(log_level).lower(), logging.INFO)

    handler: logging.Handler = DefaultLogHandler(level) if enabled else DiscardLogHandler(level)
    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        if isinstance(old, (DefaultLogHandler, DiscardLogHandler)):
            logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler