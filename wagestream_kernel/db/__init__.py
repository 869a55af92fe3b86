"""Database layer - engine, base classes and append-only enforcement."""

from wagestream_kernel.db.base import AmountText, Base, RecordedBase
from wagestream_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
)

__all__ = [
    "AmountText",
    "Base",
    "RecordedBase",
    "create_tables",
    "get_engine",
    "get_session",
    "session_scope",
]
