"""Structured Logging — JSON records for reference resolution and kernel calls.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Resolution fields (doc_id, block_id, depth, reason) and kernel fields
      (error_code, status_code) surfaced when present
    - configure_logging installs at most one kramport handler, however often it runs

Design Decisions:
    - Handler attached to the "kramport" logger, not root: an embedding host keeps
      control of its own logging tree
    - Level and format come from Settings (LOG_LEVEL, LOG_FORMAT)
"""

import logging
import json
from datetime import datetime, timezone

from kramport.config import Settings, get_settings

PACKAGE_LOGGER = "kramport"

_RESOLUTION_FIELDS = ("doc_id", "block_id", "depth", "reason")
_KERNEL_FIELDS = ("error_code", "status_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; non-JSON extras rendered with str()."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _RESOLUTION_FIELDS + _KERNEL_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class _KramportHandler(logging.StreamHandler):
    """Marker type so repeated configuration replaces instead of stacking."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """Attach a single stream handler to the kramport logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in logger.handlers if isinstance(h, _KramportHandler)]:
        logger.removeHandler(existing)

    handler = _KramportHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    settings = settings or get_settings()
    return setup_logging(settings.log_level, settings.log_format)
