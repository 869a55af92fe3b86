"""
KeyValueStore -- Append-only persistent key/value store.

Responsibility:
    The record store the stream service reads and writes: employee accounts
    keyed by identifier plus the singleton keys (employer, token, registry).
    Every write appends a version; deletes append tombstones.

Architecture position:
    Kernel > Services -- imperative shell.  ``KeyValueStore`` is the port;
    ``InMemoryStore`` and ``SqlKeyValueStore`` are the two adapters.

Invariants enforced:
    - Values are JSON-compatible and copied on the way in and out, so a
      caller can never mutate stored state by reference.
    - History is never rewritten (``history(key)`` returns every version).

Failure modes:
    - TypeError when a value is not JSON-serializable.
    - ImmutabilityViolationError (SQL adapter) if a version row is edited.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from contextlib import AbstractContextManager
from typing import Any, Protocol

from sqlalchemy import select

from wagestream_kernel.logging_config import get_logger
from wagestream_kernel.models.store_entry import StoreEntry
from wagestream_kernel.services.base import SessionBoundService
from wagestream_kernel.services.unit_of_work import snapshot_transaction
from wagestream_kernel.utils.hashing import canonicalize_json, hash_payload

logger = get_logger("services.store")

TOMBSTONE_HASH = "0" * 64


class KeyValueStore(Protocol):
    """Port for the persistent record store."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def transaction(self) -> AbstractContextManager[Any]: ...


@dataclass(frozen=True)
class StoreVersion:
    """One version of a key, as returned by ``history``."""

    seq: int
    key: str
    value: Any
    is_tombstone: bool


def _frozen_copy(value: Any) -> Any:
    # Rejects non-JSON values before anything is stored.
    canonicalize_json(value)
    return copy.deepcopy(value)


class InMemoryStore:
    """
    Process-local append-only store.

    Contract:
        Supports ``snapshot``/``restore`` so a SnapshotUnitOfWork can roll
        back an invocation.
    """

    def __init__(self) -> None:
        self._log: list[StoreVersion] = []
        self._current: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        if key not in self._current:
            return None
        return copy.deepcopy(self._current[key])

    def set(self, key: str, value: Any) -> None:
        stored = _frozen_copy(value)
        self._log.append(StoreVersion(len(self._log) + 1, key, stored, False))
        self._current[key] = stored

    def delete(self, key: str) -> None:
        if key not in self._current:
            return
        self._log.append(StoreVersion(len(self._log) + 1, key, None, True))
        del self._current[key]

    def exists(self, key: str) -> bool:
        return key in self._current

    def history(self, key: str) -> list[StoreVersion]:
        return [copy.deepcopy(v) for v in self._log if v.key == key]

    def snapshot(self) -> tuple[int, dict[str, Any]]:
        return len(self._log), dict(self._current)

    def restore(self, state: tuple[int, dict[str, Any]]) -> None:
        log_length, current = state
        del self._log[log_length:]
        self._current = dict(current)

    def transaction(self) -> AbstractContextManager[Any]:
        return snapshot_transaction(self)


class SqlKeyValueStore(SessionBoundService):
    """
    Store backed by the append-only ``store_entries`` table.

    Contract:
        Flushes within the caller's session and never commits; only
        ``transaction()`` commits.
    """

    def _latest(self, key: str) -> StoreEntry | None:
        stmt = (
            select(StoreEntry)
            .where(StoreEntry.key == key)
            .order_by(StoreEntry.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get(self, key: str) -> Any | None:
        entry = self._latest(key)
        if entry is None or entry.is_tombstone:
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any) -> None:
        stored = _frozen_copy(value)
        self.session.add(
            StoreEntry(
                key=key,
                value=stored,
                value_hash=hash_payload(stored),
                is_tombstone=False,
            )
        )
        self.session.flush()

    def delete(self, key: str) -> None:
        if not self.exists(key):
            return
        self.session.add(
            StoreEntry(
                key=key,
                value=None,
                value_hash=TOMBSTONE_HASH,
                is_tombstone=True,
            )
        )
        self.session.flush()

    def exists(self, key: str) -> bool:
        entry = self._latest(key)
        return entry is not None and not entry.is_tombstone

    def history(self, key: str) -> list[StoreVersion]:
        stmt = select(StoreEntry).where(StoreEntry.key == key).order_by(StoreEntry.id)
        return [
            StoreVersion(e.id, e.key, copy.deepcopy(e.value), e.is_tombstone)
            for e in self.session.execute(stmt).scalars()
        ]

    def verify(self) -> list[int]:
        """Return ids of version rows whose value no longer matches its hash."""
        broken: list[int] = []
        for entry in self.session.execute(select(StoreEntry).order_by(StoreEntry.id)).scalars():
            expected = TOMBSTONE_HASH if entry.is_tombstone else hash_payload(entry.value)
            if entry.value_hash != expected:
                broken.append(entry.id)
        if broken:
            logger.error("store_integrity_broken", extra={"entry_ids": broken})
        return broken
