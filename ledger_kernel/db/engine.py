"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  This is the single point of database
    connection configuration for the entire system.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except for create_tables which imports models so metadata is complete).

Invariants enforced:
    - PostgreSQL runs with READ COMMITTED and explicit row-level locking
      (FOR UPDATE) where stronger guarantees are needed.  Optimistic
      version columns cover the same hazards on SQLite, which ignores
      FOR UPDATE.
    - session_scope() is the only place that commits or rolls back.

Failure modes:
    - RuntimeError if get_engine/get_session is called before
      init_engine_from_url().
    - OptimisticLockError when a flush or commit inside session_scope()
      hits a stale version row.
"""

import atexit
import re
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.exceptions import OptimisticLockError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_STALE_TABLE = re.compile(r"on table '(?P<table>\w+)'")


def _is_sqlite_url(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_memory_sqlite(database_url: str) -> bool:
    return ":memory:" in database_url or database_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:")


def _stale_write_error(exc: StaleDataError) -> OptimisticLockError:
    match = _STALE_TABLE.search(str(exc))
    return OptimisticLockError(match.group("table") if match else "row", "unknown")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the SQLAlchemy engine from a database URL.

    PostgreSQL URLs get a QueuePool with READ COMMITTED isolation.  SQLite
    URLs (tests, local runs) get a StaticPool for in-memory databases so every
    session sees the same connection, and foreign keys are switched on.

    Postconditions: Module-level _engine and _SessionFactory are initialized.
        A second call overwrites the first.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _is_sqlite_url(database_url):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(database_url):
            kwargs["poolclass"] = StaticPool
        _engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        dialect = "sqlite"
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )
        dialect = _engine.dialect.name

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "echo": echo},
    )

    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed and the exception
        is re-raised.  A stale version row surfaces as OptimisticLockError.

    Usage:
        with session_scope() as session:
            JournalService(session).post_entry(entry_id)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except StaleDataError as exc:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise _stale_write_error(exc) from exc
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """
    Create all tables defined in the models.

    Preconditions: Engine must be initialized via init_engine_from_url().
    """
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  (registers every table)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Reset the engine and session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


atexit.register(reset_engine)
