"""Database configuration and session management."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from dashboard.config import Settings


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def create_db_engine(settings: Settings) -> Engine:
    """Create the engine with bounded waits on the pool and on locks.

    A store call that times out surfaces as a StoreError, never as an empty
    result.
    """
    timeout = settings.database_timeout_seconds
    url = settings.database_url

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            echo=False,
        )

    return create_engine(
        url,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20,
        pool_timeout=timeout,  # Wait at most this long for a pooled connection
        pool_recycle=3600,
        echo=False,
        isolation_level="READ COMMITTED",
        connect_args={
            "options": f"-c lock_timeout={timeout * 1000} -c statement_timeout={timeout * 1000}"
        },
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Prevent lazy loading errors after commit
    )


# Dependency for FastAPI routes
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    The session factory is created by ``create_app`` and kept on the
    application state.

    Yields:
        Session: SQLAlchemy database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
