"""Database connection management for ChatRelay.

Provides synchronous database access using SQLAlchemy. SQLite is the
default; any SQLAlchemy URL works through DATABASE_URL.

Usage:
    # FastAPI dependency
    from chatrelay.db.connection import get_db, init_db

    init_db()  # Create tables
    db = next(get_db())

    # Outside request scope
    with get_db_context() as db:
        ...
"""

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from chatrelay.db.models import Base

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Get database URL from environment or use default SQLite.

    Precedence:
    1. DATABASE_URL (canonical)
    2. CHATRELAY_DB_PATH (file path, converted to sqlite URL)
    3. sqlite:///<data dir>/chatrelay.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("CHATRELAY_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite:"):
            return db_path
        return f"sqlite:///{db_path}"

    from chatrelay.utils.paths import get_default_db_path
    return f"sqlite:///{get_default_db_path()}"


DATABASE_URL = get_database_url()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False}
    if DATABASE_URL.startswith("sqlite")
    else {},
    echo=os.environ.get("SQL_ECHO", "").lower() == "true",
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Enable WAL so message reads don't block the writer on SQLite."""
    if DATABASE_URL.startswith("sqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for FastAPI's Depends().

    Usage:
        @router.get("/messages")
        def list_messages(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: SQLAlchemy session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions outside of FastAPI.

    Commits on success, rolls back on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create all database tables.

    Safe to call multiple times; existing tables are left untouched.
    """
    if DATABASE_URL.startswith("sqlite") and "CHATRELAY_DB_PATH" not in os.environ \
            and "DATABASE_URL" not in os.environ:
        from chatrelay.utils.paths import ensure_dirs_exist
        ensure_dirs_exist()
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialised at %s", engine.url.render_as_string(hide_password=True))


def close_db() -> None:
    """Close the engine and dispose of the connection pool."""
    engine.dispose()
