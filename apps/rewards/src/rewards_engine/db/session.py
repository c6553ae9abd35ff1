"""Async engine and session helpers for the on-device cache database."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from rewards_engine.db.base import Base


def create_cache_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_cache_schema(engine: AsyncEngine) -> None:
    """Create cache tables if they do not exist yet."""

    import rewards_engine.models  # noqa: F401  register mappings

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["create_cache_engine", "create_session_factory", "init_cache_schema"]
