"""
Database connection management for Workflow Sage.

Provides database session management, connection handling, and transaction support.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from workflowsage.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine with settings appropriate for the database backend."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )

    return create_engine(
        database_url,
        echo=False,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=1800,
    )


# Create engine instance (singleton pattern)
engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def db_session(
    session_factory: sessionmaker = SessionLocal,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Commits on success, rolls back on any exception.

    Yields:
        Session: A SQLAlchemy session

    Example:
        >>> with db_session() as db:
        >>>     chat = ConversationRepository(db).get(chat_id)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Engine = engine) -> None:
    """Create all tables that do not exist yet."""
    from workflowsage.models.db import Base

    Base.metadata.create_all(bind=bind)
    logger.info("Database schema initialized")


def check_connection(session_factory: sessionmaker = SessionLocal) -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        with db_session(session_factory) as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
