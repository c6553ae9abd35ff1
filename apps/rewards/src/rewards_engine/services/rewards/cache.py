from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rewards_engine.models.cache_entry import LocalCacheEntry
from rewards_engine.services.rewards.errors import LocalStorageError, MalformedCache


class LocalCacheStore:
    """Key/value JSON documents persisted in the on-device cache database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                entry = await session.get(LocalCacheEntry, key)
                return entry.payload if entry is not None else None
        except SQLAlchemyError as exc:
            raise LocalStorageError(f"Failed to read cache entry {key}: {exc}") from exc

    async def read_json(self, key: str) -> Any:
        """Decoded document under ``key``; ``None`` when absent."""

        raw = await self.read(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise MalformedCache(f"Cache entry {key} is not valid JSON") from exc

    async def write(self, key: str, payload: str) -> None:
        try:
            async with self._session_factory() as session:
                entry = await session.get(LocalCacheEntry, key)
                if entry is None:
                    session.add(LocalCacheEntry(key=key, payload=payload, updated_at=datetime.now(timezone.utc)))
                else:
                    entry.payload = payload
                    entry.updated_at = datetime.now(timezone.utc)
                await session.commit()
        except SQLAlchemyError as exc:
            raise LocalStorageError(f"Failed to write cache entry {key}: {exc}") from exc

    async def write_json(self, key: str, document: Any) -> None:
        await self.write(key, json.dumps(document, default=str))

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(LocalCacheEntry).where(LocalCacheEntry.key == key))
                await session.commit()
        except SQLAlchemyError as exc:
            raise LocalStorageError(f"Failed to delete cache entry {key}: {exc}") from exc


__all__ = ["LocalCacheStore"]
