"""
core/database.py -- Engine construction shared by every store.

Each repository (auth/store.py, operations/store.py) builds its engine here
so SQLite-specific connection handling lives in one place:

  check_same_thread=False: the dashboard refresh runs its queries on a worker
      thread (asyncio.to_thread) while the engine was created on the UI thread.

  StaticPool for in-memory URLs: ":memory:" databases are per-connection, so
      every checkout must reuse the one connection or worker threads would see
      a blank schema.

  WAL mode for file databases: readers are not blocked during writes.

Database access is synchronous and blocking. There is no statement timeout:
a hung connection hangs its caller.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool


class PersistenceUnavailableError(Exception):
    """Wraps any failure of the underlying store.

    The original driver exception is kept as __cause__ (raise ... from exc).
    Nothing in the stores retries; the caller decides what to tell the user.
    """


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection; PRAGMAs are not inherited."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def is_memory_url(url: URL) -> bool:
    database = url.database or ""
    return database in ("", ":memory:") or "mode=memory" in str(url)


def create_store_engine(db_url: str | URL) -> Engine:
    """Create an Engine for db_url with the SQLite adjustments described above."""
    url = make_url(db_url)
    if not url.drivername.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    if is_memory_url(url):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def connect(engine: Engine) -> Iterator[Connection]:
    """Yield a connection; translate driver failures into PersistenceUnavailableError.

    The connection is released when the block exits, including on error.
    """
    try:
        with engine.connect() as conn:
            yield conn
    except SQLAlchemyError as exc:
        raise PersistenceUnavailableError(f"Database error: {exc}") from exc
