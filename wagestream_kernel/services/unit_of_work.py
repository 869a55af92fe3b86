"""
Invocation scope -- commit-together / roll-back-together.

Responsibility:
    Turns one stream service operation into an atomic unit across every
    collaborator that holds state: the record store, the token ledger and
    the event journal.  Each collaborator exposes ``transaction()``; an
    ``InvocationScope`` enters all of them and lets an exception unwind all
    of them.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

    In-memory collaborators roll back by snapshot/restore
    (``snapshot_transaction``); SQL collaborators roll back the shared
    session (``session_transaction``), the same commit-or-rollback shape as
    ``db.engine.session_scope``.

Invariants enforced:
    ATOMIC_INVOCATION -- a failing operation leaves the store, the pool and
        the journal exactly as they were before it started.

Failure modes:
    - Exceptions are never swallowed; every scope re-raises.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import AbstractContextManager, ExitStack, contextmanager
from typing import Any, Protocol

from sqlalchemy.orm import Session

from wagestream_kernel.logging_config import get_logger

logger = get_logger("services.unit_of_work")


class Snapshottable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class Transactional(Protocol):
    def transaction(self) -> AbstractContextManager[Any]: ...


@contextmanager
def snapshot_transaction(participant: Snapshottable) -> Generator[Any, None, None]:
    """Restore ``participant`` to its entry state if the block raises."""
    state = participant.snapshot()
    try:
        yield participant
    except BaseException:
        participant.restore(state)
        raise


@contextmanager
def session_transaction(session: Session) -> Generator[Session, None, None]:
    """Commit ``session`` on success, roll it back on any exception."""
    try:
        yield session
    except BaseException:
        session.rollback()
        raise
    session.commit()


class InvocationScope:
    """
    Atomic scope over several transactional collaborators.

    Contract:
        ``transaction()`` enters each participant's own ``transaction()`` in
        order and exits them in reverse.

    Guarantees:
        - On success every participant commits.
        - On failure every participant rolls back, then the original
          exception propagates.

    Non-goals:
        - Does NOT nest: the stream service opens one scope per outermost
          invocation only.
    """

    def __init__(self, *participants: Transactional):
        self._participants = participants

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with ExitStack() as stack:
            for participant in self._participants:
                stack.enter_context(participant.transaction())
            try:
                yield
            except Exception as exc:
                logger.info(
                    "invocation_rolled_back",
                    extra={"error_type": type(exc).__name__},
                )
                raise
