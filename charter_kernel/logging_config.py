"""
Structured JSON logging for the charter reconciliation kernel.

Every record is one JSON line. Fields bound through LogContext (the
correlation id of a reconcile call, the booking or order being extracted)
are copied onto each record emitted while they are bound.
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
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

_LOGGER_PREFIX = "charter_kernel"

_CONTEXT_FIELDS = frozenset({"correlation_id", "booking_id", "order_id"})

_bound: ContextVar[dict[str, str] | None] = ContextVar("charter_log_context", default=None)


class LogContext:
    """Reconciliation-scoped log fields, isolated per thread and per task."""

    @staticmethod
    def _merged(fields: dict[str, str | None]) -> dict[str, str]:
        unknown = set(fields) - _CONTEXT_FIELDS
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        current = dict(_bound.get() or {})
        current.update((k, v) for k, v in fields.items() if v is not None)
        return current

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set fields for the rest of the current context; None leaves a field as is."""
        _bound.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_bound.get() or {})

    @classmethod
    def clear(cls) -> None:
        _bound.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> AbstractContextManager[type["LogContext"]]:
        """Set fields for a ``with`` block, restoring the previous ones on exit."""
        return _binding(cls._merged(fields))


@contextmanager
def _binding(fields: dict[str, str]) -> Iterator[type[LogContext]]:
    token = _bound.set(fields)
    try:
        yield LogContext
    finally:
        _bound.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        # Exact text, never a float
        return str(obj)
    if isinstance(obj, (datetime, date)):
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
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            # Structured fields from CharterKernelError subclasses
            payload.update(
                (f"exc_{k}", v) for k, v in vars(exc).items()
                if not k.startswith("_") and k not in ("args", "code")
            )
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the charter_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler (stderr by default) to the charter_kernel loggers, once."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Detach handlers and undo configure_logging. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
