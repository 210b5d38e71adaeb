"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.
"""

from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import sessionmaker, Session

from shared.config.settings import get_settings


def create_db_engine(database_url: str | None = None, *, echo: bool | None = None) -> Engine:
    """
    Create an engine for the given URL (defaults to settings.database_url).

    Pool sizing and timeouts are only applied to server databases; SQLite
    uses SQLAlchemy's default pool for its URL type.
    """
    settings = get_settings()
    url = database_url or settings.database_url
    kwargs: dict = {
        "echo": settings.sql_echo if echo is None else echo,
    }

    if make_url(url).get_backend_name() != "sqlite":
        kwargs.update(
            pool_pre_ping=True,  # Verify connections before using
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
        )

    return create_engine(url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Session factory used by every BLL.

    autoflush is off so that changes staged with persist=False stay in the
    pending change set until an explicit commit.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
    )


@lru_cache
def get_engine() -> Engine:
    """Process engine built from settings."""
    return create_db_engine()


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Process session factory bound to get_engine()."""
    return create_session_factory(get_engine())


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_db_context() as db:
            CustomerBLL(db).get_all()
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
