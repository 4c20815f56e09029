"""
Application logging.

Everything logs under the ``sc2ladder`` logger. Structured fields go in
``extra={"context": {...}}`` and are appended to the line as ``key=value``.
"""

import logging
import sys
from datetime import datetime, timezone

LOGGER_NAME = "sc2ladder"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s | %(message)s"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class UTCFormatter(logging.Formatter):
    """ISO-8601 UTC timestamps plus the record's ``context`` mapping."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()

    def format(self, record):
        line = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return line
        return line + " | " + " ".join(f"{k}={v}" for k, v in context.items())


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stdout handler to the app and uvicorn loggers; safe to call twice."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(UTCFormatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S.%fZ"))

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    app_logger.handlers = [handler]

    for name in UVICORN_LOGGERS:
        logging.getLogger(name).handlers = [handler]

    return app_logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger namespaced under ``sc2ladder`` so it shares the app handler."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
