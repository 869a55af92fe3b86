"""
Structured JSON logging for the wage stream kernel.

Every record is one JSON object per line.  Invocation-scoped fields
(``correlation_id``, ``operation``, ``actor_id``, ``employee_id``) live in a
single context variable and are stamped onto every record emitted inside
the invocation, so a rejected withdrawal and the rollback it caused share
one correlation id.

Amount fields are logged as decimal strings by the services.  Integers
that a JSON consumer could not hold exactly (beyond 2**53) are stringified
by the formatter as a backstop.
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
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any

_LOGGER_PREFIX = "wagestream"

_JSON_SAFE_INT = 2**53

_EMPTY: Mapping[str, str] = {}


class LogContext:
    """Invocation-scoped log fields, safe across threads and tasks."""

    FIELDS: tuple[str, ...] = (
        "correlation_id",
        "operation",
        "actor_id",
        "employee_id",
    )

    _fields: ContextVar[Mapping[str, str]] = ContextVar(
        "wagestream_log_fields", default=_EMPTY
    )

    @classmethod
    def _merged(cls, updates: Mapping[str, str | None]) -> dict[str, str]:
        unknown = set(updates) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context fields: {sorted(unknown)}")
        merged = dict(cls._fields.get())
        merged.update({k: v for k, v in updates.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields. Only non-None values are updated."""
        cls._fields.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(cls._fields.get())

    @classmethod
    def clear(cls) -> None:
        cls._fields.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Generator[None, None, None]:
        """Overlay fields for the duration of the block, then restore."""
        token = cls._fields.set(cls._merged(fields))
        try:
            yield
        finally:
            cls._fields.reset(token)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and abs(value) >= _JSON_SAFE_INT:
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


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
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED and key not in payload
        )

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            # WageStreamError subclasses carry their context as attributes
            payload.update(
                (f"exc_{k}", v)
                for k, v in vars(exc).items()
                if not k.startswith("_") and k != "code"
            )
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(_jsonable(payload), default=str)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the wagestream namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``wagestream`` logger (idempotent).

    ``level`` may be a logging constant or a level name such as ``"DEBUG"``.
    Records do not propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Detach handlers and allow reconfiguration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
