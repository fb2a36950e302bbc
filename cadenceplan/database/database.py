"""Database connection and session management for cadenceplan.

SQLite is the default (`DATABASE_URL` unset); any SQLAlchemy URL works.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from cadenceplan.config import DATABASE_URL


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return create_engine kwargs for a DB URL.

    Kept separate so it can be tested without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # The overdue sweep writes from a scheduler thread
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    engine = create_engine(database_url, **get_engine_kwargs(database_url))
    if _is_sqlite_url(database_url):
        event.listen(engine, "connect", set_sqlite_pragmas)
    return engine


def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable foreign keys and WAL journaling on SQLite connections."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


# Module-level singleton
engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def init_db(bind: Engine = None) -> None:
    """Create the schema on the given engine (defaults to the module engine)."""
    # Register the mapped tables on Base.metadata
    from cadenceplan.database import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
