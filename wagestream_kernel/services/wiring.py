"""
Wiring -- Assemble a WageStreamService with its collaborators.

``in_memory_stream`` builds a process-local stack for tests and embedding;
``sql_stream`` builds one on a SQLAlchemy session whose store, ledger and
journal share that session so an invocation commits or rolls back as one.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from wagestream_kernel.db.immutability import register_immutability_listeners
from wagestream_kernel.domain.clock import Clock, SystemClock
from wagestream_kernel.services.authorization import Authorizer, InvocationAuthorizer
from wagestream_kernel.services.event_journal import (
    EventJournal,
    InMemoryEventJournal,
    SqlEventJournal,
)
from wagestream_kernel.services.store import InMemoryStore, KeyValueStore, SqlKeyValueStore
from wagestream_kernel.services.stream_service import DEFAULT_POOL_HOLDER, WageStreamService
from wagestream_kernel.services.token_ledger import (
    FundTransferService,
    InMemoryTokenLedger,
    SqlTokenLedger,
)


@dataclass(frozen=True)
class StreamStack:
    """A service together with the collaborators it was built from."""

    service: WageStreamService
    store: KeyValueStore
    ledger: FundTransferService
    journal: EventJournal
    authorizer: Authorizer
    clock: Clock


def in_memory_stream(
    clock: Clock | None = None,
    authorizer: Authorizer | None = None,
    pool_holder: str = DEFAULT_POOL_HOLDER,
) -> StreamStack:
    clock = clock or SystemClock()
    authorizer = authorizer or InvocationAuthorizer()
    store = InMemoryStore()
    ledger = InMemoryTokenLedger()
    journal = InMemoryEventJournal()
    service = WageStreamService(
        store=store,
        ledger=ledger,
        authorizer=authorizer,
        clock=clock,
        journal=journal,
        pool_holder=pool_holder,
    )
    return StreamStack(service, store, ledger, journal, authorizer, clock)


def sql_stream(
    session: Session,
    clock: Clock | None = None,
    authorizer: Authorizer | None = None,
    pool_holder: str = DEFAULT_POOL_HOLDER,
) -> StreamStack:
    register_immutability_listeners()
    clock = clock or SystemClock()
    authorizer = authorizer or InvocationAuthorizer()
    store = SqlKeyValueStore(session)
    ledger = SqlTokenLedger(session)
    journal = SqlEventJournal(session)
    service = WageStreamService(
        store=store,
        ledger=ledger,
        authorizer=authorizer,
        clock=clock,
        journal=journal,
        pool_holder=pool_holder,
    )
    return StreamStack(service, store, ledger, journal, authorizer, clock)
