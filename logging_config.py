from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

CONTEXT_KEYS = (
    "device_code",
    "window",
    "source",
    "path",
    "ticket",
    "reason",
    "reading_count",
    "warning_count",
    "invalid_value",
)

# Loggers that keep their own handlers unless routed through ours.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_configured = False


def _render_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    text = str(value)
    if not text or any(char.isspace() for char in text):
        return repr(text)
    return text


class ContextualFormatter(logging.Formatter):
    """Appends ``key=value`` pairs for known ``extra`` fields. Timestamps are UTC."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        context_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._context_keys: Sequence[str] = tuple(context_keys or CONTEXT_KEYS)

    def context_of(self, record: logging.LogRecord) -> list[str]:
        parts: list[str] = []
        for key in self._context_keys:
            value = getattr(record, key, None)
            if value is None:
                continue
            parts.append(f"{key}={_render_value(value)}")
        return parts

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        parts = self.context_of(record)
        if not parts:
            return message
        # Keep the traceback, if any, after the context.
        head, sep, tail = message.partition("\n")
        return f"{head} | {' '.join(parts)}{sep}{tail}"


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Route the root logger and the server loggers through ``ContextualFormatter``."""
    global _configured
    if _configured and not force:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "context_keys": list(CONTEXT_KEYS),
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "contextual",
                }
            },
            "loggers": {
                name: {"handlers": ["console"], "level": log_level, "propagate": False}
                for name in _SERVER_LOGGERS
            },
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    _configured = True
