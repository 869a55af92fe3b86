"""
Module: wagestream_kernel.db.engine
Responsibility: the process-wide engine and session factory for the SQL
    backed stream stack, plus a commit-or-rollback session scope.
Architecture position: Kernel > DB.  Imports models only inside
    create_tables/drop_tables so their tables register on Base.metadata.

Invariants enforced:
    - One engine per process.  Re-initializing disposes the previous one.
    - In-memory SQLite shares a single connection (StaticPool) so every
      session of a test or CLI run sees the same ledger.

Failure modes:
    - RuntimeError if get_engine or get_session is called before
      init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wagestream_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _engine_options(url: URL) -> dict[str, Any]:
    if url.get_backend_name() != "sqlite":
        # Server databases: check pooled connections before handing them out
        return {"pool_pre_ping": True, "pool_recycle": 1800}
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if _is_memory_sqlite(url):
        options["poolclass"] = StaticPool
    return options


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Accepts any SQLAlchemy URL; ``sqlite:///wagestream.db`` is the default
    deployment, ``sqlite:///:memory:`` the test one.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    url = make_url(database_url)
    _engine = create_engine(url, echo=echo, **_engine_options(url))
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": url.get_backend_name(),
            "in_memory": _is_memory_sqlite(url),
            "echo": echo,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    A session that commits on normal exit and rolls back on any exception.

    The session is always closed; the exception is re-raised.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from wagestream_kernel.db.base import Base
    import wagestream_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every kernel table. Tests only."""
    from wagestream_kernel.db.base import Base
    import wagestream_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
