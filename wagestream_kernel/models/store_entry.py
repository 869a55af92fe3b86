"""
Module: wagestream_kernel.models.store_entry
Responsibility: ORM persistence for the append-only key/value store.  Every
    ``set`` appends a new version row for its key; every ``delete`` appends a
    tombstone.  The current value of a key is its newest row.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Rows are append-only; UPDATE and DELETE are blocked by
      db/immutability.py listeners.
    - value_hash = H(canonical JSON of value), so any later tampering with
      a version is detectable.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from wagestream_kernel.db.base import RecordedBase


class StoreEntry(RecordedBase):
    """
    One version of one key.

    Contract:
        ``id`` orders versions globally; the newest row per key wins.
        A tombstone row has ``is_tombstone=True`` and a null value.
    """

    __tablename__ = "store_entries"

    __table_args__ = (
        Index("idx_store_key_id", "key", "id"),
    )

    key: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    value: Mapped[Any] = mapped_column(
        JSON,
        nullable=True,
    )

    value_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    is_tombstone: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        state = "tombstone" if self.is_tombstone else "value"
        return f"<StoreEntry #{self.id} {self.key} ({state})>"
