"""
core/database.py -- Engine construction and scoped connection acquisition.

Every store in Rolegate shares one SQLAlchemy Engine built here. The engine
always uses a QueuePool with max_overflow=0, so the pool size is a hard cap
on concurrent storage round trips, and pool_timeout bounds how long a caller
waits for a connection. Pool exhaustion therefore surfaces as a retryable
Unavailable instead of hanging a worker thread indefinitely.

connection() and transaction() are the only ways stores touch the engine.
Both are context managers: the pooled connection is returned on every exit
path (success, query error, timeout), and SQLAlchemy driver errors are
translated into the typed errors in core/errors.py:

    sqlalchemy.exc.TimeoutError      -> Unavailable  (pool exhausted)
    sqlalchemy.exc.OperationalError  -> Unavailable  (store unreachable)
    sqlalchemy.exc.IntegrityError    -> propagated   (stores map it to Duplicate*)
    any other SQLAlchemyError        -> Internal

SQLite notes:
  check_same_thread=False is required because route handlers run in a thread
  pool. Foreign keys are enabled per connection (SQLite PRAGMAs are not
  inherited by new pooled connections). WAL mode is enabled for file-backed
  databases only.

Layer rule: core/ is the kernel. No imports from api/, auth/, or items/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from core.errors import Internal, Unavailable

logger = logging.getLogger("rolegate.db")

# Largest value an INTEGER primary key can hold (signed 64-bit). Larger ids
# cannot be bound as query parameters at all, so callers reject them up front.
MAX_ID = 2**63 - 1


def _sqlite_on_connect(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_wal(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind writers."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_db_engine(db_url: str, pool_size: int = 5, pool_timeout: float = 5.0) -> Engine:
    """Build the shared Engine with a bounded QueuePool.

    QueuePool is forced even for SQLite (whose dialect would otherwise pick
    SingletonThreadPool for in-memory URLs) so the same bounded-acquire
    behaviour applies in tests and production.
    """
    connect_args: dict = {}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
    engine = create_engine(
        db_url,
        connect_args=connect_args,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        pool_pre_ping=not is_sqlite,
    )
    if is_sqlite:
        event.listen(engine, "connect", _sqlite_on_connect)
        if "mode=memory" not in db_url and ":memory:" not in db_url:
            event.listen(engine, "connect", _sqlite_wal)
    return engine


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError:
        raise
    except PoolTimeoutError as exc:
        logger.warning("Connection pool exhausted: %s", exc)
        raise Unavailable("storage busy, retry later") from exc
    except OperationalError as exc:
        logger.warning("Storage unreachable: %s", exc.__class__.__name__)
        raise Unavailable("storage unreachable, retry later") from exc
    except SQLAlchemyError as exc:
        logger.exception("Unexpected storage error")
        raise Internal("unexpected storage error") from exc


@contextmanager
def connection(engine: Engine) -> Iterator[Connection]:
    """Yield a pooled connection for a single read or autocommitted statement."""
    with _translate_errors():
        with engine.connect() as conn:
            yield conn


@contextmanager
def transaction(engine: Engine) -> Iterator[Connection]:
    """Yield a connection inside BEGIN ... COMMIT; rolled back on any exception."""
    with _translate_errors():
        with engine.begin() as conn:
            yield conn


def ping(engine: Engine) -> bool:
    """Return True if a trivial round trip to the store succeeds."""
    try:
        with connection(engine) as conn:
            conn.execute(text("SELECT 1"))
    except (Unavailable, Internal):
        return False
    return True
