"""
Database session management for SQLAlchemy 2.0 with SQLite.

This module exposes:
- engine: global SQLAlchemy engine
- SessionLocal: sessionmaker factory
- get_db: FastAPI dependency yielding a session per request
"""

from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from acemux.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """Create an engine, preparing the SQLite file location and pragmas when needed."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True, future=True)

    if url.database and url.database != ":memory:":
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    # FastAPI runs sync endpoints in a threadpool, so connections cross threads.
    sqlite_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        future=True,
    )

    @event.listens_for(sqlite_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.database_url)

# Session factory
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


# PUBLIC_INTERFACE
def get_db() -> Generator:
    """FastAPI dependency that provides a DB session and ensures cleanup."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
