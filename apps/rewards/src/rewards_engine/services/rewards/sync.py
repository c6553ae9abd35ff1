"""Reconcile the on-device rewards cache with the remote rewards authority.

Reads are remote-first: a reachable remote always wins and refreshes the
cache, an unreachable one falls back to the last cached copy, and an empty or
corrupt cache falls back to zero defaults. Writes are local-first: the new
profile is persisted to the cache before anything touches the network, and
the remote call then runs as a background task whose failure is logged and
dropped. The local write is what makes a mutation visible; the remote is a
reconciliation feed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

from loguru import logger
from pydantic import ValidationError

from rewards_engine.core.settings import Settings
from rewards_engine.domain.rewards.gift_cycle import FREE_GIFT_THRESHOLD
from rewards_engine.domain.rewards.ledger import Accrual, GiftRedemption, PointsRedemption, with_derived
from rewards_engine.observability.rewards import RewardsTelemetry, get_rewards_telemetry
from rewards_engine.schemas.rewards import Bundle, Offer, RewardsProfile
from rewards_engine.services.rewards.cache import LocalCacheStore
from rewards_engine.services.rewards.client import RewardsApiClient
from rewards_engine.services.rewards.defaults import default_bundles, default_offers
from rewards_engine.services.rewards.envelopes import (
    bundle_from_payload,
    bundles_from_payload,
    offers_from_payload,
    profile_from_payload,
    records_from_payload,
)
from rewards_engine.services.rewards.errors import LocalStorageError, MalformedCache, RemoteUnavailable

ItemT = TypeVar("ItemT")


class ProfileState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    READY_STALE = "ready_stale"


@dataclass(slots=True)
class ProfileLoad:
    profile: RewardsProfile
    state: ProfileState
    source: str
    unavailable: bool = False


@dataclass
class ReferenceLoad(Generic[ItemT]):
    items: list[ItemT]
    source: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _same_amount(remote: Any, local: Decimal) -> bool:
    try:
        return Decimal(str(remote)) == local
    except (InvalidOperation, ValueError):
        return False


class SyncCoordinator:
    """Sole owner of the cached rewards entries."""

    def __init__(
        self,
        client: RewardsApiClient,
        cache: LocalCacheStore,
        *,
        profile_key: str = "rewards_cache",
        offers_key: str = "rewards_offers_cache",
        bundles_key: str = "rewards_bundles_cache",
        threshold: int = FREE_GIFT_THRESHOLD,
        telemetry: RewardsTelemetry | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._cache = cache
        self._profile_key = profile_key
        self._offers_key = offers_key
        self._bundles_key = bundles_key
        self._threshold = threshold
        self._telemetry = telemetry or get_rewards_telemetry()
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(
        cls,
        client: RewardsApiClient,
        cache: LocalCacheStore,
        settings: Settings,
        **kwargs: Any,
    ) -> "SyncCoordinator":
        return cls(
            client,
            cache,
            profile_key=settings.rewards_cache_key,
            offers_key=settings.offers_cache_key,
            bundles_key=settings.bundles_cache_key,
            threshold=settings.free_gift_threshold,
            **kwargs,
        )

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Profile reads

    async def load_profile(self) -> ProfileLoad:
        try:
            fetched = profile_from_payload(await self._client.get_user_rewards())
        except RemoteUnavailable as exc:
            logger.warning("Rewards remote unavailable, using cached profile", code=exc.code, error=str(exc))
            return await self._load_cached_profile()

        profile = with_derived(fetched, self._threshold).model_copy(update={"last_updated": self._clock()})
        try:
            await self._cache.write(self._profile_key, profile.to_cache())
        except LocalStorageError as exc:
            self._telemetry.record_cache_fault(exc.code)
            logger.warning("Could not refresh rewards cache after remote load", error=str(exc))

        self._telemetry.record_load("remote")
        logger.info(
            "Rewards profile loaded",
            source="remote",
            tier=profile.tier.value,
            points=profile.points,
            total_purchases=profile.total_purchases,
        )
        return ProfileLoad(profile=profile, state=ProfileState.READY, source="remote")

    async def _load_cached_profile(self) -> ProfileLoad:
        try:
            document = await self._cache.read_json(self._profile_key)
            if document is not None:
                try:
                    cached = RewardsProfile.model_validate(document)
                except ValidationError as exc:
                    raise MalformedCache(f"Cached rewards profile failed validation: {exc.error_count()} error(s)") from exc
                self._telemetry.record_load("cache")
                logger.info("Rewards profile loaded", source="cache", tier=cached.tier.value, points=cached.points)
                return ProfileLoad(profile=cached, state=ProfileState.READY_STALE, source="cache")
        except (MalformedCache, LocalStorageError) as exc:
            self._telemetry.record_cache_fault(exc.code)
            logger.warning("Rewards cache unusable, treating as empty", code=exc.code, error=str(exc))

        self._telemetry.record_load("default")
        logger.warning("Rewards unavailable, serving default profile")
        return ProfileLoad(
            profile=RewardsProfile.zero(self._threshold),
            state=ProfileState.READY_STALE,
            source="default",
            unavailable=True,
        )

    # ------------------------------------------------------------------
    # Profile writes

    async def _persist(self, profile: RewardsProfile) -> None:
        # Raises LocalStorageError: without the local write the mutation did not happen.
        await self._cache.write(self._profile_key, profile.to_cache())

    async def commit_accrual(self, accrual: Accrual, *, purchase_amount: Any, purchase_count: int) -> None:
        await self._persist(accrual.profile)
        self._propagate(
            "accrue",
            lambda: self._client.update_rewards(
                points_earned=accrual.points_earned,
                purchase_amount=purchase_amount,
                purchase_count=purchase_count,
            ),
        )

    async def commit_points_redemption(self, redemption: PointsRedemption) -> None:
        await self._persist(redemption.profile)

        async def _call() -> Any:
            result = await self._client.redeem_points(redemption.points)
            remote_discount = result.get("discount") if isinstance(result, Mapping) else None
            if remote_discount is not None and not _same_amount(remote_discount, redemption.discount):
                # Local discount already applied; remote figure is informational.
                logger.info(
                    "Remote discount differs from local calculation",
                    local_discount=str(redemption.discount),
                    remote_discount=remote_discount,
                )
            return result

        self._propagate("redeem_points", _call)

    async def commit_gift_redemption(self, redemption: GiftRedemption) -> None:
        await self._persist(redemption.profile)
        self._propagate("redeem_gift", self._client.redeem_free_gift)

    async def reset(self) -> None:
        await self._cache.delete(self._profile_key)

    def _propagate(self, operation: str, call: Callable[[], Awaitable[Any]]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(
            self._run_propagation(operation, call),
            name=f"rewards-sync:{operation}",
        )
        self._pending.add(task)
        task.add_done_callback(self._on_propagation_done)
        return task

    async def _run_propagation(self, operation: str, call: Callable[[], Awaitable[Any]]) -> None:
        try:
            result = await call()
        except RemoteUnavailable as exc:
            self._telemetry.record_propagation(operation, success=False)
            logger.warning(
                "Rewards sync failed, local state kept",
                operation=operation,
                code=exc.code,
                error=str(exc),
            )
            return

        if isinstance(result, Mapping) and result.get("success") is False:
            self._telemetry.record_propagation(operation, success=False)
            logger.warning("Rewards sync rejected by remote, local state kept", operation=operation)
            return

        self._telemetry.record_propagation(operation, success=True)
        logger.debug("Rewards sync delivered", operation=operation)

    def _on_propagation_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Rewards sync task crashed", task=task.get_name())

    async def drain(self) -> None:
        """Wait for every scheduled propagation, including ones queued meanwhile."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Reference data

    async def load_offers(self) -> ReferenceLoad[Offer]:
        return await self._load_reference(
            kind="offers",
            key=self._offers_key,
            fetch=self._client.get_special_offers,
            parse=offers_from_payload,
            fallback=lambda: default_offers(self._clock()),
        )

    async def load_bundles(self) -> ReferenceLoad[Bundle]:
        return await self._load_reference(
            kind="bundles",
            key=self._bundles_key,
            fetch=self._client.get_bundles,
            parse=bundles_from_payload,
            fallback=default_bundles,
        )

    async def _load_reference(
        self,
        *,
        kind: str,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        parse: Callable[[Any], list[ItemT]],
        fallback: Callable[[], list[ItemT]],
    ) -> ReferenceLoad[ItemT]:
        try:
            items = parse(await fetch())
        except RemoteUnavailable as exc:
            logger.warning("Rewards reference data unavailable remotely", kind=kind, code=exc.code)
        else:
            try:
                await self._cache.write_json(key, [item.model_dump(mode="json", by_alias=True) for item in items])
            except LocalStorageError as exc:
                self._telemetry.record_cache_fault(exc.code)
                logger.warning("Could not cache rewards reference data", kind=kind, error=str(exc))
            return ReferenceLoad(items=items, source="remote")

        try:
            document = await self._cache.read_json(key)
            if document is not None:
                return ReferenceLoad(items=parse(document), source="cache")
        except (MalformedCache, LocalStorageError, RemoteUnavailable) as exc:
            self._telemetry.record_cache_fault(getattr(exc, "code", "malformed_cache"))
            logger.warning("Cached rewards reference data unusable", kind=kind, error=str(exc))

        logger.info("Serving built-in rewards reference data", kind=kind)
        return ReferenceLoad(items=fallback(), source="fallback")

    # ------------------------------------------------------------------
    # Remote-only reads

    async def bundle_details(self, bundle_id: str) -> Bundle:
        return bundle_from_payload(await self._client.get_bundle_details(bundle_id))

    async def apply_bogo_offer(self, offer_id: str, product_id: str) -> dict[str, Any]:
        result = await self._client.apply_bogo_offer(offer_id, product_id)
        return dict(result) if isinstance(result, Mapping) else {}

    async def rewards_history(self) -> list[dict[str, Any]]:
        try:
            return records_from_payload(await self._client.get_rewards_history(), "history", "entries")
        except RemoteUnavailable as exc:
            logger.warning("Rewards history unavailable", code=exc.code)
            return []

    async def free_gift_options(self) -> list[dict[str, Any]]:
        try:
            return records_from_payload(await self._client.get_free_gift_options(), "gifts", "options")
        except RemoteUnavailable as exc:
            logger.warning("Free gift options unavailable", code=exc.code)
            return []


__all__ = ["ProfileLoad", "ProfileState", "ReferenceLoad", "SyncCoordinator"]
