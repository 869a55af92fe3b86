"""
SessionBoundService -- base for the SQLAlchemy-backed collaborators.

Responsibility:
    Common constructor and transaction contract for ``SqlKeyValueStore``,
    ``SqlTokenLedger`` and ``SqlEventJournal``.  Writes use
    ``session.flush()``; only ``transaction()`` commits or rolls back.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    ATOMIC_INVOCATION -- all SQL collaborators of one stream service share a
        session, so committing or rolling back any of them commits or rolls
        back all of them together.

Failure modes:
    - Any exception inside ``transaction()`` rolls the session back and is
      re-raised unchanged.
"""

from abc import ABC
from contextlib import AbstractContextManager

from sqlalchemy.orm import Session

from wagestream_kernel.services.unit_of_work import session_transaction


class SessionBoundService(ABC):
    """
    Abstract base for collaborators that persist through a shared session.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and flushes within
        its active transaction.

    Guarantees:
        - Plain write methods never call ``session.commit()``.
        - ``transaction()`` is the only place the session is committed.
    """

    def __init__(self, session: Session):
        self.session = session

    def transaction(self) -> AbstractContextManager[Session]:
        return session_transaction(self.session)
