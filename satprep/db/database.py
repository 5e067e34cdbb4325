from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings
from satprep.db.models.base import Base

settings = get_settings()


def _create_engine(url: str) -> Engine:
    """Create an engine; SQLite URLs get thread-shareable connections."""
    kwargs: dict = {"echo": settings.log_level == "DEBUG"}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One connection, so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


engine = _create_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_engine() -> Engine:
    """Get the database engine."""
    return engine


def configure_database(url: str) -> Engine:
    """Rebind the engine and session factory to another database."""
    global engine
    engine.dispose()
    engine = _create_engine(url)
    SessionLocal.configure(bind=engine)
    logger.debug(f"Database rebound to {url}")
    return engine


def init_db() -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def drop_db() -> None:
    """Drop all tables."""
    Base.metadata.drop_all(bind=engine)
    logger.info("Database tables dropped")


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions. Services commit explicitly."""
    session = SessionLocal()
    try:
        yield session
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
