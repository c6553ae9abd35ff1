import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from rewards_engine.db.base import Base  # noqa: E402
from rewards_engine.observability.rewards import RewardsTelemetry  # noqa: E402
from rewards_engine.services.rewards import (  # noqa: E402
    LocalCacheStore,
    LocalStorageError,
    RewardsApiClient,
    RewardsStore,
    SyncCoordinator,
)

import rewards_engine.models  # noqa: E402,F401

FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def cache(session_factory) -> LocalCacheStore:
    return LocalCacheStore(session_factory)


@pytest.fixture
def telemetry() -> RewardsTelemetry:
    return RewardsTelemetry()


class BrokenWriteCache(LocalCacheStore):
    """Cache whose writes fail, as on a full device."""

    async def write(self, key: str, payload: str) -> None:
        raise LocalStorageError(f"disk full while writing {key}")


def offline_handler() -> Handler:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network unreachable", request=request)

    return handler


@pytest_asyncio.fixture
async def build_store(cache, telemetry):
    """Factory wiring a RewardsStore to a MockTransport-backed remote."""

    clients: list[httpx.AsyncClient] = []
    stores: list[RewardsStore] = []

    def _build(handler: Handler, *, store_cache: LocalCacheStore | None = None) -> RewardsStore:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http_client)
        api = RewardsApiClient("https://rewards.test", auth_token="token-123", http_client=http_client)
        coordinator = SyncCoordinator(
            api,
            store_cache or cache,
            telemetry=telemetry,
            clock=lambda: FIXED_NOW,
        )
        store = RewardsStore(coordinator)
        stores.append(store)
        return store

    try:
        yield _build
    finally:
        for store in stores:
            await store.wait_for_sync()
        for http_client in clients:
            await http_client.aclose()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def broken_cache(session_factory) -> LocalCacheStore:
    return BrokenWriteCache(session_factory)


@pytest.fixture
def offline() -> Handler:
    return offline_handler()
