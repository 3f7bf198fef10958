"""SQLAlchemy base configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker, scoped_session, Session
from sqlalchemy.pool import StaticPool

from config.settings import DATABASE_URL

SQLITE_BUSY_TIMEOUT_MS = 5000


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def _prepare_sqlite_path(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    if not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def _is_memory_database(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_sqlalchemy_engine(database_url: str = DATABASE_URL) -> Engine:
    """Create SQLAlchemy engine; SQLite gets WAL and a busy timeout for threaded writers."""
    _prepare_sqlite_path(database_url)
    engine_kwargs = {}
    connect_args = {}

    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False
        if _is_memory_database(database_url):
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if is_sqlite and not _is_memory_database(database_url):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
            cursor.close()

    return engine


_ENGINES: dict[str, Engine] = {}
_SESSION_FACTORIES: dict[str, Callable[[], Session]] = {}


def get_engine(database_url: str = DATABASE_URL) -> Engine:
    engine = _ENGINES.get(database_url)
    if engine is None:
        engine = create_sqlalchemy_engine(database_url)
        _ENGINES[database_url] = engine
    return engine


def get_session_factory(database_url: str = DATABASE_URL):
    factory = _SESSION_FACTORIES.get(database_url)
    if factory is None:
        engine = get_engine(database_url)
        factory = scoped_session(
            sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        )
        _SESSION_FACTORIES[database_url] = factory
    return factory
