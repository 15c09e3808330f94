"""Database configuration and session management."""

import logging
from typing import Generator
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)


def is_memory_sqlite(database_url: str) -> bool:
    """True for `sqlite://`, `sqlite:///:memory:` and shared-cache memory URIs."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return False
    database = url.database or ""
    return database in ("", ":memory:") or "mode=memory" in database or url.query.get("mode") == "memory"


def create_db_engine(database_url: str) -> Engine:
    """Build the engine for a database URL."""
    # Handle different database types
    if is_memory_sqlite(database_url):
        # An in-memory database only exists on its one connection
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
            poolclass=StaticPool
        )

    if database_url.startswith("sqlite"):
        # File-backed SQLite: one pooled connection per session, so concurrent
        # requests get their own transactions; writers wait on the file lock
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=settings.DEBUG
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.DEBUG
    )


# Database engine configuration
engine = create_db_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Database dependency for FastAPI endpoints."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connectivity check failed: {e}")
        return False


def init_db() -> None:
    """Initialize database tables."""
    # Register the models on Base.metadata before creating tables
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def close_db() -> None:
    """Close database connections."""
    engine.dispose()
