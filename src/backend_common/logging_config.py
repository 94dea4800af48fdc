"""Logging configuration for structured key=value logging."""
from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


_CONTROL_ESCAPES = str.maketrans({"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"})


def _escape(value: Any) -> Any:
    """Escape control characters in strings at any nesting depth."""
    if isinstance(value, str):
        return value.translate(_CONTROL_ESCAPES)
    if isinstance(value, dict):
        return {key: _escape(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_escape(item) for item in value]
    return value


def escape_control_chars(logger, method_name, event_dict):
    """Keep each entry on one line; device ids and user agents are client-supplied.

    Runs after format_exc_info so formatted tracebacks are flattened too.
    """
    return {key: _escape(value) for key, value in event_dict.items()}


class SingleLineFormatter(logging.Formatter):
    """Formatter that ensures output is always on a single line."""

    def format(self, record):
        message = super().format(record)
        return message.replace("\n", "\\n").replace("\r", "\\r")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure structlog for key=value output on stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SingleLineFormatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    root_logger.propagate = False

    # aiohttp access logs go through the root handler
    aiohttp_logger = logging.getLogger("aiohttp.access")
    aiohttp_logger.setLevel(logging.INFO)
    aiohttp_logger.propagate = True
    aiohttp_logger.handlers = []

    # Format: timestamp=... level=info logger=... event=... trace_id=... path=/api/data
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # MUST stay between format_exc_info and the renderer
            escape_control_chars,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "logger", "event", "message"],
                drop_missing=True,
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
