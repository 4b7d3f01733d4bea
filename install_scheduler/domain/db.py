"""Database engine and session helpers for the booking store."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///install_scheduler.db"
DB_URL_ENV = "INSTALL_SCHEDULER_DB_URL"


def resolve_db_url(db_url: Optional[str] = None) -> str:
    """Explicit URL first, then $INSTALL_SCHEDULER_DB_URL, then the local SQLite file."""
    return db_url or os.getenv(DB_URL_ENV) or DEFAULT_DB_URL


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create an engine for the booking store.

    SQLite connections get foreign keys switched on so removing a schedule
    also removes its installer links and slices at the database level.
    """
    url = resolve_db_url(db_url)
    engine = create_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(db_url: Optional[str] = None) -> str:
    """Create all tables. Returns the URL that was initialized."""
    url = resolve_db_url(db_url)
    Base.metadata.create_all(create_db_engine(url))
    logger.info("Database initialized: %s", url)
    return url


def get_session(db_url: Optional[str] = None) -> Session:
    """Open a session on the booking store."""
    return sessionmaker(bind=create_db_engine(db_url))()


@contextmanager
def session_scope(db_url: Optional[str] = None) -> Iterator[Session]:
    """Session that is rolled back on error and always closed."""
    session = get_session(db_url)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
