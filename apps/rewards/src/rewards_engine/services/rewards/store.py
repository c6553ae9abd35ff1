"""Session-scoped owner of the rewards profile and its reference data."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from loguru import logger

from rewards_engine.domain.rewards import ledger
from rewards_engine.domain.rewards.gift_cycle import progress_percent
from rewards_engine.domain.rewards.ledger import (
    Accrual,
    GiftRedemption,
    InsufficientPoints,
    NoGiftsAvailable,
    PointsRedemption,
)
from rewards_engine.schemas.rewards import Bundle, Offer, RewardsProfile
from rewards_engine.services.catalog import bundles as bundle_savings
from rewards_engine.services.catalog.offers import match_bogo
from rewards_engine.services.rewards.errors import ProfileNotLoaded
from rewards_engine.services.rewards.sync import ProfileState, SyncCoordinator


class RewardsStore:
    """Holds the signed-in member's rewards profile.

    One instance per authenticated session, passed to whatever needs it.
    Mutators always start from the profile held right now, under a lock, so
    two overlapping purchases or redemptions are applied one after the other
    instead of overwriting each other.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        *,
        featured_min_savings_percent: int = bundle_savings.FEATURABLE_SAVINGS_PERCENT,
    ) -> None:
        self._sync = coordinator
        self._featured_min_percent = featured_min_savings_percent
        self._lock = asyncio.Lock()
        self._profile = RewardsProfile.zero(coordinator.threshold)
        self._state = ProfileState.UNLOADED
        self._unavailable = False
        self._offers: list[Offer] = []
        self._bundles: list[Bundle] = []

    @property
    def profile(self) -> RewardsProfile:
        return self._profile

    @property
    def state(self) -> ProfileState:
        return self._state

    @property
    def unavailable(self) -> bool:
        """True when the last load found neither the remote nor a usable cache."""

        return self._unavailable

    @property
    def offers(self) -> tuple[Offer, ...]:
        return tuple(self._offers)

    @property
    def bundles(self) -> tuple[Bundle, ...]:
        return tuple(self._bundles)

    @property
    def available_free_gifts(self) -> int:
        return self._profile.available_free_gifts

    @property
    def gift_progress_percent(self) -> float:
        return progress_percent(self._profile.purchases_until_free_gift, self._sync.threshold)

    # ------------------------------------------------------------------
    # Session lifecycle

    async def load(self) -> RewardsProfile:
        async with self._lock:
            self._state = ProfileState.LOADING
            result = await self._sync.load_profile()
            self._profile = result.profile
            self._state = result.state
            self._unavailable = result.unavailable
            return self._profile

    async def logout(self) -> None:
        async with self._lock:
            self._profile = RewardsProfile.zero(self._sync.threshold)
            self._state = ProfileState.UNLOADED
            self._unavailable = False
            self._offers = []
            self._bundles = []
            await self._sync.reset()
        logger.info("Rewards session reset")

    def _require_loaded(self) -> RewardsProfile:
        if self._state not in (ProfileState.READY, ProfileState.READY_STALE):
            raise ProfileNotLoaded()
        return self._profile

    # ------------------------------------------------------------------
    # Mutations

    async def record_purchase(self, purchase_amount: Decimal | float | int, purchase_count: int = 1) -> Accrual:
        async with self._lock:
            current = self._require_loaded()
            accrual = ledger.accrue(
                current,
                purchase_amount,
                purchase_count,
                threshold=self._sync.threshold,
                now=self._sync.now(),
            )
            await self._sync.commit_accrual(accrual, purchase_amount=purchase_amount, purchase_count=purchase_count)
            self._profile = accrual.profile

        logger.info(
            "Purchase recorded",
            points_earned=accrual.points_earned,
            tier=accrual.profile.tier.value,
            tier_changed=accrual.tier_changed,
            gift_just_earned=accrual.gift_just_earned,
        )
        return accrual

    async def redeem_points(self, points: int) -> PointsRedemption | InsufficientPoints:
        async with self._lock:
            outcome = ledger.redeem_points(self._require_loaded(), points, now=self._sync.now())
            if isinstance(outcome, InsufficientPoints):
                return outcome
            await self._sync.commit_points_redemption(outcome)
            self._profile = outcome.profile
            return outcome

    async def redeem_free_gift(self) -> GiftRedemption | NoGiftsAvailable:
        async with self._lock:
            outcome = ledger.redeem_free_gift(self._require_loaded(), now=self._sync.now())
            if isinstance(outcome, NoGiftsAvailable):
                return outcome
            await self._sync.commit_gift_redemption(outcome)
            self._profile = outcome.profile
            return outcome

    async def wait_for_sync(self) -> None:
        await self._sync.drain()

    # ------------------------------------------------------------------
    # Offers and bundles

    async def refresh_offers(self) -> list[Offer]:
        async with self._lock:
            result = await self._sync.load_offers()
            self._offers = list(result.items)
            return list(self._offers)

    async def refresh_bundles(self) -> list[Bundle]:
        async with self._lock:
            result = await self._sync.load_bundles()
            self._bundles = list(result.items)
            return list(self._bundles)

    def bogo_offer_for(self, product: Any) -> Offer | None:
        return match_bogo(self._offers, product)

    def featured_bundle(self) -> Bundle | None:
        return bundle_savings.featured(self._bundles)

    def is_featurable(self, bundle: Bundle) -> bool:
        return bundle_savings.is_featurable(bundle, self._featured_min_percent)

    async def bundle_details(self, bundle_id: str) -> Bundle:
        return await self._sync.bundle_details(bundle_id)

    async def apply_bogo_offer(self, offer_id: str, product_id: str) -> dict[str, Any]:
        return await self._sync.apply_bogo_offer(offer_id, product_id)

    async def rewards_history(self) -> list[dict[str, Any]]:
        return await self._sync.rewards_history()

    async def free_gift_options(self) -> list[dict[str, Any]]:
        return await self._sync.free_gift_options()


__all__ = ["RewardsStore"]
