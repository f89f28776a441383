"""Centralized logging configuration with JSON-formatted extras."""

import json
import logging
import sys

from aso_engine.config import settings

ENGINE_LOGGER_NAME = "aso_engine"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONExtrasFormatter(logging.Formatter):
    """Readable log line with the record's extras appended as sorted JSON.

    Output format:
        2024-01-15 10:30:45 | INFO     | aso_engine.module | Message {"key": "value"}
    """

    def __init__(self, datefmt: str | None = "%Y-%m-%d %H:%M:%S") -> None:
        super().__init__(LOG_FORMAT, datefmt=datefmt)

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not extras:
            return line
        return f"{line} {json.dumps(extras, default=str, ensure_ascii=False, sort_keys=True)}"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the 'aso_engine' logger with console output and JSON extras."""
    logger = logging.getLogger(ENGINE_LOGGER_NAME)
    resolved_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logger.setLevel(resolved_level)

    # Avoid adding duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved_level)
    handler.setFormatter(JSONExtrasFormatter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger
