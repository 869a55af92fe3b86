"""
Module: wagestream_kernel.models.stream_event
Responsibility: ORM persistence for the hash-chained stream event journal.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only; no UPDATE or DELETE (db/immutability.py).
    - seq is unique and gap-free, allocated by SqlEventJournal.
    - hash = H(seq | action | employee_id | payload_hash | prev_hash).

Failure modes:
    - IntegrityError on a duplicate seq.
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
"""

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from wagestream_kernel.db.base import AmountText, RecordedBase


class StreamEventRecord(RecordedBase):
    """Persisted form of a domain StreamEvent."""

    __tablename__ = "stream_events"

    __table_args__ = (
        Index("idx_stream_event_employee", "employee_id"),
        Index("idx_stream_event_action", "action"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    employee_id: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    amount: Mapped[str] = mapped_column(
        AmountText,
        nullable=False,
    )

    # Ledger timestamp of the invocation, in seconds
    timestamp: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    payload_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    prev_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StreamEventRecord #{self.seq} {self.action} {self.employee_id}>"
