"""
core/db.py -- SQLAlchemy engine factory shared by every store.

UserStore, AttemptsStore and InternshipStore usually point at the same
database. Building their engines here keeps the connection options identical,
so every SQLite connection gets the same PRAGMAs whichever store opened it.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, internship/, or mail/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journaling and foreign keys on every new SQLite connection.

    SQLite PRAGMAs are per-connection, so they are set from a connect event
    rather than once at engine creation.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


def make_engine(db_url: str) -> Engine:
    """Create an engine with the SQLite-specific options applied when relevant.

    check_same_thread=False is required because FastAPI runs sync handlers
    in a thread pool.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine
