"""
EventJournal -- Append-only, hash-chained history of committed operations.

Responsibility:
    Appends one StreamEvent per committed mutating operation and returns
    the history, optionally filtered to one employee.  ``verify()``
    recomputes the hash chain.

Architecture position:
    Kernel > Services -- imperative shell.  Event construction and chain
    verification are pure (domain.events); this module allocates sequence
    numbers and persists.

Invariants enforced:
    - seq is gap-free and starts at 1.
    - Each event's prev_hash is the previous event's hash.
    - The journal participates in the invocation scope, so events of a
      rolled-back invocation disappear with it.

Failure modes:
    - ImmutabilityViolationError (SQL) on any edit of a persisted event.
    - ``verify()`` returns the seq of the first broken event.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol

from sqlalchemy import select

from wagestream_kernel.domain.events import (
    StreamAction,
    StreamEvent,
    build_event,
    verify_chain,
)
from wagestream_kernel.logging_config import get_logger
from wagestream_kernel.models.stream_event import StreamEventRecord
from wagestream_kernel.services.base import SessionBoundService
from wagestream_kernel.services.unit_of_work import snapshot_transaction

logger = get_logger("services.event_journal")


class EventJournal(Protocol):
    def append(
        self,
        action: StreamAction,
        employee_id: str | None,
        amount: int,
        timestamp: int,
        details: dict[str, Any] | None = None,
    ) -> StreamEvent: ...

    def events(self, employee_id: str | None = None) -> list[StreamEvent]: ...

    def verify(self) -> int | None: ...

    def transaction(self) -> AbstractContextManager[Any]: ...


def _report_broken(broken_seq: int | None) -> int | None:
    if broken_seq is not None:
        logger.error("event_chain_broken", extra={"seq": broken_seq})
    return broken_seq


class InMemoryEventJournal:
    """Process-local journal with snapshot/restore for rollback."""

    def __init__(self) -> None:
        self._events: list[StreamEvent] = []

    def append(
        self,
        action: StreamAction,
        employee_id: str | None,
        amount: int,
        timestamp: int,
        details: dict[str, Any] | None = None,
    ) -> StreamEvent:
        prev_hash = self._events[-1].hash if self._events else None
        event = build_event(
            seq=len(self._events) + 1,
            action=action,
            employee_id=employee_id,
            amount=amount,
            timestamp=timestamp,
            prev_hash=prev_hash,
            details=details,
        )
        self._events.append(event)
        return event

    def events(self, employee_id: str | None = None) -> list[StreamEvent]:
        if employee_id is None:
            return list(self._events)
        return [e for e in self._events if e.employee_id == employee_id]

    def verify(self) -> int | None:
        return _report_broken(verify_chain(self._events))

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, state: int) -> None:
        del self._events[state:]

    def transaction(self) -> AbstractContextManager[Any]:
        return snapshot_transaction(self)


class SqlEventJournal(SessionBoundService):
    """Journal persisted in the append-only ``stream_events`` table."""

    def _last(self) -> StreamEventRecord | None:
        stmt = select(StreamEventRecord).order_by(StreamEventRecord.seq.desc()).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def append(
        self,
        action: StreamAction,
        employee_id: str | None,
        amount: int,
        timestamp: int,
        details: dict[str, Any] | None = None,
    ) -> StreamEvent:
        last = self._last()
        event = build_event(
            seq=(last.seq + 1) if last is not None else 1,
            action=action,
            employee_id=employee_id,
            amount=amount,
            timestamp=timestamp,
            prev_hash=last.hash if last is not None else None,
            details=details,
        )
        self.session.add(
            StreamEventRecord(
                seq=event.seq,
                action=event.action.value,
                employee_id=event.employee_id,
                amount=str(event.amount),
                timestamp=event.timestamp,
                payload=event.payload,
                payload_hash=event.payload_hash,
                prev_hash=event.prev_hash,
                hash=event.hash,
            )
        )
        self.session.flush()
        return event

    def events(self, employee_id: str | None = None) -> list[StreamEvent]:
        stmt = select(StreamEventRecord).order_by(StreamEventRecord.seq)
        if employee_id is not None:
            stmt = stmt.where(StreamEventRecord.employee_id == employee_id)
        return [
            StreamEvent(
                seq=row.seq,
                action=StreamAction(row.action),
                employee_id=row.employee_id,
                amount=int(row.amount),
                timestamp=row.timestamp,
                payload_hash=row.payload_hash,
                prev_hash=row.prev_hash,
                hash=row.hash,
                payload=dict(row.payload or {}),
            )
            for row in self.session.execute(stmt).scalars()
        ]

    def verify(self) -> int | None:
        return _report_broken(verify_chain(self.events()))
