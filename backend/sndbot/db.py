"""Database connection and session management."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from .config import Settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


# Global engine and session maker (initialized on startup)
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def init_db(settings: Settings) -> None:
    """Initialize database engine and session maker.

    Called from the bot service before the Discord client connects.
    """
    global _engine, _async_session_maker

    _engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )

    _async_session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _async_session_maker is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return _async_session_maker


async def create_all() -> None:
    """Create missing tables. Alembic migrations remain the source of truth."""
    if _engine is None:
        raise RuntimeError("Database not initialized; call init_db() first")

    # Import models so they register with Base.metadata
    from . import models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections.

    Called during bot shutdown.
    """
    global _engine, _async_session_maker
    if _engine:
        await _engine.dispose()
    _engine = None
    _async_session_maker = None
