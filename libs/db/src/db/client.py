"""Centralized SQLAlchemy engine/session helpers for the workspace.

Usage
-----
from db.client import get_engine, session_scope

with session_scope() as s:
    s.execute(...)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# One engine (and session factory) per URL; tests open a fresh SQLite file
# per case, so a single process-wide engine is not enough.
_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SAVEPOINT/``Session.begin_nested()`` work on pysqlite engines.

    pysqlite defers its own BEGIN until the first DML statement, which breaks
    nested transactions. Disable the driver's handling and emit BEGIN from the
    engine's ``begin`` event instead.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):  # pragma: no cover - tiny bridge
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # pragma: no cover - tiny bridge
        conn.exec_driver_sql("BEGIN")


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared SQLAlchemy engine for a URL, creating it on first use."""

    url = _database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is not None:
        return engine

    # Default isolation level is fine; echo disabled.
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    _ENGINES[url] = engine
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new SQLAlchemy session bound to the shared engine."""

    url = _database_url(database_url)
    get_engine(database_url=url)
    return _SESSION_MAKERS[url]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    """Dispose every cached engine (closes pooled connections)."""

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSION_MAKERS.clear()


__all__ = [
    "dispose_engines",
    "enable_sqlite_savepoints",
    "get_engine",
    "get_session",
    "session_scope",
]
