"""
Events -- Hash-chained record of committed stream operations.

Responsibility:
    Defines StreamAction and the immutable StreamEvent appended to the event
    journal after every committed mutating operation, plus pure functions to
    build a chained event and to verify a chain.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    hash = H(seq | action | employee_id | payload_hash | prev_hash); the
    first event chains from "GENESIS".

Failure modes:
    - ``verify_chain`` returns the seq of the first broken link, or None.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from wagestream_kernel.utils.hashing import hash_payload, hash_stream_event


class StreamAction(str, Enum):
    """Kinds of committed operations recorded in the journal."""

    INITIALIZED = "initialized"

    # Lifecycle
    EMPLOYEE_HIRED = "employee_hired"
    WAGE_RATE_UPDATED = "wage_rate_updated"
    EMPLOYEE_FROZEN = "employee_frozen"
    EMPLOYEE_ACTIVATED = "employee_activated"
    EMPLOYEE_REMOVED = "employee_removed"
    TIMESTAMP_FIXED = "timestamp_fixed"

    # Pool
    DEPOSITED = "deposited"
    SURPLUS_WITHDRAWN = "surplus_withdrawn"

    # Settlement
    WITHDRAWN = "withdrawn"
    PARTIAL_PAID = "partial_paid"
    SWEPT = "swept"


@dataclass(frozen=True)
class StreamEvent:
    """
    One committed operation.

    Guarantees:
        - seq starts at 1 and increases by 1 per event
        - prev_hash is None only for seq 1
        - amount is the value moved (0 when nothing moved)
    """

    seq: int
    action: StreamAction
    employee_id: str | None
    amount: int
    timestamp: int
    payload_hash: str
    prev_hash: str | None
    hash: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seq": self.seq,
            "action": self.action.value,
            "employee_id": self.employee_id,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
            "payload": self.payload,
            "payload_hash": self.payload_hash,
            "prev_hash": self.prev_hash,
            "hash": self.hash,
        }


def _event_payload(
    employee_id: str | None, amount: int, timestamp: int, details: dict[str, Any]
) -> dict[str, Any]:
    return {
        "employee_id": employee_id,
        "amount": str(amount),
        "timestamp": timestamp,
        "details": details,
    }


def build_event(
    seq: int,
    action: StreamAction,
    employee_id: str | None,
    amount: int,
    timestamp: int,
    prev_hash: str | None,
    details: dict[str, Any] | None = None,
) -> StreamEvent:
    """Build the next chained event after ``prev_hash``."""
    details = dict(details or {})
    payload_hash = hash_payload(_event_payload(employee_id, amount, timestamp, details))
    return StreamEvent(
        seq=seq,
        action=action,
        employee_id=employee_id,
        amount=amount,
        timestamp=timestamp,
        payload_hash=payload_hash,
        prev_hash=prev_hash,
        hash=hash_stream_event(seq, action.value, employee_id, payload_hash, prev_hash),
        payload=details,
    )


def verify_chain(events: Sequence[StreamEvent]) -> int | None:
    """Return the seq of the first event whose link or hash is wrong, else None."""
    prev_hash: str | None = None
    for expected_seq, event in enumerate(events, start=1):
        payload_hash = hash_payload(
            _event_payload(event.employee_id, event.amount, event.timestamp, event.payload)
        )
        recomputed = hash_stream_event(
            event.seq, event.action.value, event.employee_id, payload_hash, prev_hash
        )
        if (
            event.seq != expected_seq
            or event.prev_hash != prev_hash
            or event.payload_hash != payload_hash
            or event.hash != recomputed
        ):
            return event.seq
        prev_hash = event.hash
    return None
