"""Logging setup shared by the API process and the Temporal worker."""

import logging
import os
import sys
from typing import Optional

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends ``extra`` fields (job_id, journal_entry_id, ...) as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return line


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a stdout logger for ``name``.

    Args:
        name: Logger name, normally ``__name__``
        level: Level override; defaults to the ``LOG_LEVEL`` environment variable
    """
    logger = logging.getLogger(name)
    log_level = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(ContextFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
