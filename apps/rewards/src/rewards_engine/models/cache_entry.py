"""Key/value rows backing the on-device rewards cache."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from rewards_engine.db.base import Base


class LocalCacheEntry(Base):
    """Serialized JSON document stored under a fixed cache key."""

    __tablename__ = "local_cache_entries"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
