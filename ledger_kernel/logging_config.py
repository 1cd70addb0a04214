"""
Structured JSON logging for the ledger kernel.

Every record is written as one JSON object per line:

    {"ts": ..., "level": "INFO", "logger": "ledger_kernel.services.journal",
     "message": "journal_entry_posted", "correlation_id": ..., "entry_id": ...,
     "entry_number": "JV-0001"}

Request-scoped fields (correlation, actor, entry, period) live in a single
context variable so they follow the current thread or task.  Kernel errors
logged with ``exc_info`` are expanded into ``exc_code``, ``exc_kind`` and one
``exc_<attr>`` field per structured attribute.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default=_EMPTY)


class LogContext:
    """Request-scoped log fields, safe across threads and async tasks."""

    FIELDS = ("correlation_id", "actor_id", "entry_id", "period_id")

    @classmethod
    def _merged(cls, fields: dict[str, Any]) -> Mapping[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set context fields; None values leave the current value alone."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
        fields["exc_kind"] = getattr(exc, "kind", type(exc).__name__)
    to_details = getattr(exc, "to_details", None)
    if callable(to_details):
        fields.update({f"exc_{k}": v for k, v in to_details().items()})
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; non-ASCII (Persian) text is kept as is."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (k, v)
            for k, v in vars(record).items()
            if k not in _RESERVED and k not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_ROOT = "ledger_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``ledger_kernel`` namespace (``services.journal`` etc.)."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach the JSON handler to the ``ledger_kernel`` logger.

    Only the first call has an effect.  ``level`` accepts the names used in
    the YAML config ("INFO", "DEBUG", ...).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

        root = logging.getLogger(_ROOT)
        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False
        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        root.addHandler(target)


def reset_logging() -> None:
    """Drop handlers and allow configure_logging() to run again. Tests only."""
    global _configured
    with _lock:
        _configured = False
        root = logging.getLogger(_ROOT)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
