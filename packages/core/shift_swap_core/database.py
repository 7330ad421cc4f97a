"""Database connection and session management for Shift Swap.

This module provides SQLAlchemy database connectivity that works with
both SQLite (development) and PostgreSQL (production).

Usage:
    from shift_swap_core.database import get_session, init_db

    # Initialize database (creates tables if needed)
    init_db()

    # Use session for queries
    with get_session() as session:
        requests = session.query(SwapRequest).all()
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker, declarative_base

# Base class for SQLAlchemy models
Base = declarative_base()

# Default to SQLite in development
# Set DATABASE_URL environment variable to use PostgreSQL
DEFAULT_DATABASE_URL = f"sqlite:///{Path(__file__).parent.parent.parent.parent / 'dev.db'}"


def get_database_url() -> str:
    """Get database URL from environment or use default SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# Create engine (lazy initialization)
_engine = None
_SessionLocal = None


def _configure_sqlite_transactions(engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite connections.

    The pysqlite driver defers BEGIN until the first DML statement, which breaks
    SAVEPOINT handling, and the swap exchange runs inside a SAVEPOINT. BEGIN
    IMMEDIATE takes the write lock up front so a second writer waits for the
    first to commit instead of failing with "database is locked".
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        database_url = get_database_url()

        # SQLite-specific settings
        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        _engine = create_engine(
            database_url,
            connect_args=connect_args,
            echo=os.environ.get("SQL_DEBUG", "").lower() == "true",
        )
        if database_url.startswith("sqlite"):
            _configure_sqlite_transactions(_engine)
    return _engine


def get_session_factory():
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session as a context manager.

    Usage:
        with get_session() as session:
            shifts = session.query(Shift).all()
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """Initialize the database (create tables if they don't exist).

    Note: In production, use migrations instead.
    This is mainly for testing or development convenience.
    """
    # Import models to register them with Base
    from shift_swap_core.db_models import (  # noqa: F401
        User, Shift, SwapRequest, Comment, Setting
    )
    Base.metadata.create_all(bind=get_engine())


def reset_engine():
    """Reset the engine and session factory (useful for testing)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
