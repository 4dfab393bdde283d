"""
Database session management.

Provides the SQLModel engine and session creation.  The engine is built
lazily on first use so that importing the application never requires a
configured database; a missing configuration surfaces as
:class:`ConfigurationError` at the point of use.
"""

from functools import lru_cache
from typing import Callable, Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from app.core.config import settings
from app.core.errors import ConfigurationError

SessionFactory = Callable[[], Session]


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first call."""
    if not settings.database_configured:
        raise ConfigurationError("Missing database configuration (DATABASE_PASSWORD or DATABASE_URL_OVERRIDE)")

    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        return create_engine(url, echo=settings.DEBUG, connect_args={ "check_same_thread": False })

    return create_engine(
        url,
        echo=settings.DEBUG,  # Log SQL queries in debug mode
        pool_pre_ping=True,   # Verify connections before using
        pool_size=5,          # Connection pool size
        max_overflow=10       # Max connections beyond pool_size
    )


def make_session_factory(engine: Engine) -> SessionFactory:
    """Build a zero-argument callable returning new sessions bound to ``engine``."""

    def factory() -> Session:
        return Session(engine)

    return factory


def get_session_factory() -> SessionFactory:
    """Dependency returning a session factory for the configured engine."""
    return make_session_factory(get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    Yields:
        SQLModel Session instance
    """
    with Session(get_engine()) as session:
        yield session
