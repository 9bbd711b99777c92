"""Logging utilities for Book QA.

Records are rendered as one JSON object per line. Fields bound with
:func:`with_context` (a document id, a book title) travel as ``ctx_*`` keys
so ingest and query logs for one book can be filtered together.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, MutableMapping

import orjson

LEVEL_ENV = "BOOKQA_LOG_LEVEL"
CONTEXT_PREFIX = "ctx_"
# HTTP client libraries log every connection at DEBUG/INFO.
QUIET_LOGGERS = ("urllib3", "httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """JSON log formatter; non-serializable context values fall back to ``str``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        for key, value in record.__dict__.items():
            if key.startswith(CONTEXT_PREFIX):
                payload[key] = value
        return orjson.dumps(payload, default=str).decode("utf-8")


class ContextAdapter(logging.LoggerAdapter):
    """Attach bound fields to every record as ``ctx_<name>`` attributes."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = {f"{CONTEXT_PREFIX}{key}": value for key, value in self.extra.items()}
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def with_context(logger: logging.Logger, **context: Any) -> ContextAdapter:
    return ContextAdapter(logger, context)


def configure_logging(level: str | int | None = None, use_json: bool = True) -> None:
    """Configure the root logger; ``level`` defaults to ``$BOOKQA_LOG_LEVEL`` or INFO."""
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO").upper()
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "bookqa") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "ContextAdapter", "with_context", "configure_logging", "get_logger"]
