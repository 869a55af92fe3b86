"""
Pytest fixtures for the wage stream test suite.

Provides:
- Structured logging setup and captured JSON log records
- A deterministic clock pinned to a known epoch
- In-memory and SQLite-backed service stacks
- Helpers to run operations as a given identity
"""

import json
import logging
from collections.abc import Generator
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from wagestream_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from wagestream_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from wagestream_kernel.domain.clock import DeterministicClock
from wagestream_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from wagestream_kernel.services.wiring import StreamStack, in_memory_stream, sql_stream

EMPLOYER = "employer"
TOKEN = "USDC"
T0 = 1_704_110_400


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _configure_test_logging():
    """Configure structured logging for each test."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture wagestream logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, stream):
            ...
            logs = captured_logs()
            assert any(r["message"] == "employee_hired" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("wagestream")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(T0)


# =============================================================================
# Stacks
# =============================================================================


def _bootstrap(stack: StreamStack, pool: int, employer_funds: int) -> StreamStack:
    with stack.authorizer.signed_by(EMPLOYER):
        stack.service.init(EMPLOYER, TOKEN)
    if employer_funds:
        with stack.ledger.transaction():
            stack.ledger.mint(EMPLOYER, employer_funds)
    if pool:
        with stack.authorizer.signed_by(EMPLOYER):
            stack.service.deposit(pool)
    return stack


@pytest.fixture
def bare_stream(clock) -> StreamStack:
    """In-memory stack that has not been initialized."""
    return in_memory_stream(clock=clock)


@pytest.fixture
def stream(clock) -> StreamStack:
    """In-memory stack, initialized, pool funded with 1_000_000."""
    return _bootstrap(in_memory_stream(clock=clock), pool=1_000_000, employer_funds=2_000_000)


@pytest.fixture
def empty_pool_stream(clock) -> StreamStack:
    """In-memory stack, initialized, employer funded, pool empty."""
    return _bootstrap(in_memory_stream(clock=clock), pool=0, employer_funds=1_000_000)


@pytest.fixture
def sqlite_session() -> Generator[Session, None, None]:
    """Session on a fresh in-memory SQLite database with all tables."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    register_immutability_listeners()
    session = get_session()
    try:
        yield session
    finally:
        session.close()
        drop_tables()
        unregister_immutability_listeners()
        reset_engine()


@pytest.fixture
def sql_stack(sqlite_session, clock) -> StreamStack:
    """SQLite-backed stack, initialized, pool funded with 1_000_000."""
    return _bootstrap(
        sql_stream(sqlite_session, clock=clock), pool=1_000_000, employer_funds=2_000_000
    )


@pytest.fixture
def as_employer():
    """Run a callable signed by the employer: ``as_employer(stack, fn, *args)``."""

    def _run(stack: StreamStack, fn, *args, **kwargs):
        with stack.authorizer.signed_by(EMPLOYER):
            return fn(*args, **kwargs)

    return _run


@pytest.fixture
def as_identity():
    """Run a callable signed by ``identity``: ``as_identity(stack, who, fn, *args)``."""

    def _run(stack: StreamStack, identity: str, fn, *args, **kwargs):
        with stack.authorizer.signed_by(identity):
            return fn(*args, **kwargs)

    return _run
