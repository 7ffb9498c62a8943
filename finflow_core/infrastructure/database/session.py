"""Database session management with connection pooling"""

from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from finflow_core.config import settings


@lru_cache
def get_engine() -> Engine:
    """Create the engine on first use so importing the app needs no database"""
    if settings.database_url.startswith("sqlite"):
        return create_engine(settings.database_url, connect_args={"check_same_thread": False})

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        settings.database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
