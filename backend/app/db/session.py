"""Database engine and session utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def configure_engine(database_url: str | None = None) -> AsyncEngine:
    """(Re)create the process-wide engine, defaulting to the configured URL."""

    global _engine, _session_factory
    url = database_url or get_settings().database_url
    _engine = create_async_engine(url, future=True, echo=False)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False, class_=AsyncSession)
    return _engine


def get_engine() -> AsyncEngine:
    """Return a singleton async engine."""

    if _engine is None:
        return configure_engine()
    return _engine


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield an AsyncSession for FastAPI dependency usage."""

    if _session_factory is None:
        configure_engine()
    assert _session_factory is not None
    async with _session_factory() as session:
        yield session


__all__ = ["configure_engine", "get_engine", "get_db"]
