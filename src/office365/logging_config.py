"""Logging setup for the office365 logger hierarchy.

Library modules log event-style messages (page_fetched, request_failed,
access_token_refreshed, ...) with their details in ``extra=``. The JSON
formatter nests those details under "context" and masks anything that looks
like token material.

OFFICE365_LOG_LEVEL and OFFICE365_LOG_FORMAT (json | text) control output.
"""

import json
import logging
import os
from datetime import datetime, timezone

REDACTED = "[REDACTED]"

# Extras with these keys never reach the output
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "token",
        "authorization",
        "bearer",
        "client_secret",
        "secret",
        "password",
        "credential",
    }
)

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _context(record: logging.LogRecord) -> dict:
    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS else value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: timestamp (UTC, Z suffix), level, logger,
    message, plus "context" for extras and "exception" for tracebacks."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain single-line output for local development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(level: str | None = None) -> None:
    """Attach a single handler to the "office365" logger.

    Safe to call repeatedly: the existing handler is reused and only its
    formatter and the logger level change.

    Args:
        level: Level name; falls back to OFFICE365_LOG_LEVEL, then INFO
    """
    level_name = (level or os.getenv("OFFICE365_LOG_LEVEL") or "INFO").upper()
    use_text = os.getenv("OFFICE365_LOG_FORMAT", "json").lower() == "text"
    formatter = TextFormatter() if use_text else StructuredFormatter()

    logger = logging.getLogger("office365")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())
    for handler in logger.handlers:
        handler.setFormatter(formatter)

    logger.propagate = False
