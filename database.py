"""
Database connection and session management for PillPal
"""

import logging
from sqlalchemy import create_engine, event, func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from config import settings


logger = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL.

    SQLite (file or :memory:) shares one connection across threads so the
    in-memory database survives between sessions; other backends get a pool.
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )

        @event.listens_for(sqlite_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True
    )


def create_session_factory(bind: Engine) -> sessionmaker:
    # Services hand ORM objects back after their session has closed
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind
    )


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
SessionLocal = create_session_factory(engine)

# Base class for ORM models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes to get database session.
    Automatically closes session after request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database session.
    Use this for background tasks or non-FastAPI contexts.

    Commits on success, rolls back and re-raises on any error.

    Usage:
        with get_db_context() as db:
            db.query(Medication).all()
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


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create the medications, history_entries and achievements tables
    if they do not exist yet.
    """
    # Import models to register them with Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL if bind is None else bind.url}")


class DatabaseHealthCheck:
    """Database health check utilities"""

    @staticmethod
    def is_connected() -> bool:
        """Check if database is connected"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @staticmethod
    def get_row_counts(db: Session) -> Dict[str, int]:
        """Row counts per table; empty when the database is unreadable"""
        import models

        counts = {}
        try:
            for model in (models.Medication, models.HistoryEntry, models.Achievement):
                counts[model.__tablename__] = db.query(func.count()).select_from(model).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Error counting rows: {e}")
            return {}
        return counts


__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "create_db_engine",
    "create_session_factory",
    "DatabaseHealthCheck",
]
