"""
Authorizer -- Who signed the current invocation.

Responsibility:
    Answers ``require_auth(identity)`` for the stream service.  The service
    decides WHICH identity must authorize (employer or employee); the
    authorizer only knows whether that identity authorized the invocation
    in progress.

Architecture position:
    Kernel > Services -- imperative shell.  Callers (the CLI, a host
    process, tests) open a ``signed_by(...)`` scope around their calls.

Invariants enforced:
    - Signers are scoped by a ContextVar, so concurrent threads and tasks
      never see each other's signatures.
    - Leaving a ``signed_by`` scope restores the previous signer set.

Failure modes:
    - NotAuthorizedError when the identity is not among the signers.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Protocol

from wagestream_kernel.exceptions import NotAuthorizedError
from wagestream_kernel.logging_config import LogContext


class Authorizer(Protocol):
    def require_auth(self, identity: str) -> None: ...


class InvocationAuthorizer:
    """
    Authorizer backed by the set of identities that signed the invocation.

    Usage:
        authorizer = InvocationAuthorizer()
        with authorizer.signed_by("employer"):
            service.hire("alice", 100, WagePeriod.HOUR)
    """

    def __init__(self) -> None:
        self._signers: ContextVar[frozenset[str]] = ContextVar(
            f"wagestream_signers_{id(self)}", default=frozenset()
        )

    @property
    def signers(self) -> frozenset[str]:
        return self._signers.get()

    @contextmanager
    def signed_by(self, *identities: str) -> Generator[None, None, None]:
        signers = frozenset(identities)
        token = self._signers.set(signers)
        try:
            with LogContext.bind(actor_id=",".join(sorted(signers)) or None):
                yield
        finally:
            self._signers.reset(token)

    def require_auth(self, identity: str) -> None:
        if identity not in self._signers.get():
            raise NotAuthorizedError(identity)


class AllowAllAuthorizer:
    """Accepts every identity.  For trusted single-user tooling and tests."""

    def require_auth(self, identity: str) -> None:
        return None
