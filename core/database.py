"""
core/database.py -- SQLAlchemy engine construction shared by all stores.

One Engine (and therefore one connection pool) is created per process and
handed to every store. Stores check out a connection per operation with a
`with engine.connect()` / `with engine.begin()` block and never hold one
across requests.

SQLite is supported for local development and tests; PostgreSQL is a
connection string change (DATABASE_URL=postgresql://user:pw@host/db).
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create the process-wide Engine for db_url.

    SQLite requires check_same_thread=False because FastAPI runs sync route
    handlers in a threadpool, so a pooled connection may be used from a
    different thread than the one that opened it.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine
