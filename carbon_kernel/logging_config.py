"""
Structured JSON logging for the carbon kernel.

Every line is one JSON object: timestamp, level, logger and message, the
invocation fields bound in LogContext (tx_id, caller_id, method,
correlation_id), then the ``extra`` payload of the call.  Exceptions that
carry a ``code`` add it and their structured attributes as ``exc_*`` keys.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

_EMPTY: Mapping[str, str] = MappingProxyType({})


class LogContext:
    """Invocation-scoped log fields, isolated per thread and per task."""

    FIELDS = ("correlation_id", "tx_id", "caller_id", "method")

    _fields: ContextVar[Mapping[str, str]] = ContextVar("carbon_log_fields", default=_EMPTY)

    @classmethod
    def _merged(cls, updates: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(updates) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context fields: {sorted(unknown)}")
        fields = dict(cls._fields.get())
        fields.update({k: v for k, v in updates.items() if v is not None})
        return MappingProxyType(fields)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Update the given fields; None values leave a field unchanged."""
        cls._fields.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {name: cls._fields.get()[name] for name in cls.FIELDS if name in cls._fields.get()}

    @classmethod
    def clear(cls) -> None:
        cls._fields.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore."""
        token = cls._fields.set(cls._merged(fields))
        try:
            yield cls
        finally:
            cls._fields.reset(token)


# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
            # MarketplaceError subclasses keep their context as attributes
            for name, value in vars(exc).items():
                if not name.startswith("_"):
                    fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


_LOGGER_PREFIX = "carbon_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the carbon_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str | None = None,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the carbon_kernel logger.

    The handler is installed once.  A later call with an explicit ``level``
    only changes the level; without one it does nothing.
    """
    global _configured
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if _configured:
            if level is not None:
                kernel_logger.setLevel(level)
            return
        _configured = True

    kernel_logger.setLevel(level if level is not None else logging.INFO)
    kernel_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
