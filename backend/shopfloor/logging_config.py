"""
Structured logging configuration.

- LOG_FORMAT=json: one JSON object per line (log aggregator compatible)
- LOG_FORMAT=text: human-readable lines for local development
- Log level: controlled via LOG_LEVEL
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from shopfloor.core.settings import get_settings

# Extra fields copied from ``logger.x(..., extra={...})`` into JSON output
_CONTEXT_FIELDS = (
    "item_id",
    "order_id",
    "action",
    "station",
    "current_step",
    "status",
    "operator_id",
    "reason",
    "path",
    "error_code",
    "details",
    "errors",
    "version",
    "environment",
    "debug",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in _CONTEXT_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now().strftime("%H:%M:%S")
        base = f"{ts} {record.levelname:<8} {record.name}: {record.getMessage()}"
        item_id = getattr(record, "item_id", None)
        if item_id:
            base += f" [item={item_id}]"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger with a single stderr handler.

    Arguments default to LOG_LEVEL / LOG_FORMAT from settings.
    """
    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    fmt = (log_format or settings.LOG_FORMAT).lower()

    formatter = JSONFormatter() if fmt == "json" else ReadableFormatter()

    root = logging.getLogger()
    # Remove existing handlers to prevent duplicates on re-configuration
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    root.addHandler(handler)
    root.setLevel(log_level)

    # Quieten noisy libraries
    for noisy in ("uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
