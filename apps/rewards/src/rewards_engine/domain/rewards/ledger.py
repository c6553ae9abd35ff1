"""Points accrual and redemption over immutable rewards profiles.

Every function takes the current profile and returns a new one; nothing here
performs I/O. Domain refusals (not enough points, no gift to claim) are
returned as values so callers can branch on them without exception handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Any

from rewards_engine.domain.rewards.gift_cycle import FREE_GIFT_THRESHOLD, cycle_of
from rewards_engine.domain.rewards.tiers import Tier, multiplier_of, tier_of
from rewards_engine.schemas.rewards import RewardsProfile

POINTS_PER_DOLLAR = 10
POINTS_PER_DISCOUNT_DOLLAR = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Accrual:
    profile: RewardsProfile
    points_earned: int
    gift_just_earned: bool
    previous_tier: Tier

    @property
    def tier_changed(self) -> bool:
        return self.profile.tier != self.previous_tier


@dataclass(frozen=True, slots=True)
class PointsRedemption:
    profile: RewardsProfile
    discount: Decimal
    points: int


@dataclass(frozen=True, slots=True)
class GiftRedemption:
    profile: RewardsProfile


@dataclass(frozen=True, slots=True)
class InsufficientPoints:
    requested: int
    available: int

    @property
    def message(self) -> str:
        if self.requested <= 0:
            return "Points to redeem must be positive"
        return "Not enough points"


@dataclass(frozen=True, slots=True)
class NoGiftsAvailable:
    earned: int
    redeemed: int

    @property
    def message(self) -> str:
        return "No free gifts available"


def points_for(purchase_amount: Decimal | float | int, tier: Tier) -> int:
    amount = Decimal(str(purchase_amount))
    raw = amount * POINTS_PER_DOLLAR * multiplier_of(tier)
    return int(raw.to_integral_value(rounding=ROUND_FLOOR))


def _whole(value: Any, name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, (float, Decimal)):
        exact = Decimal(str(value))
        if exact.is_finite() and exact % 1 == 0:
            return int(exact)
    raise ValueError(f"{name} must be a whole number, got {value!r}")


def _revise(profile: RewardsProfile, **changes: Any) -> RewardsProfile:
    # model_copy(update=...) would skip field validation.
    return RewardsProfile.model_validate({**profile.model_dump(), **changes})


def with_derived(profile: RewardsProfile, threshold: int = FREE_GIFT_THRESHOLD) -> RewardsProfile:
    """Recompute tier and gift countdown from ``total_purchases``."""

    cycle = cycle_of(profile.total_purchases, threshold)
    return _revise(
        profile,
        tier=tier_of(profile.total_purchases),
        purchases_until_free_gift=cycle.purchases_until_gift,
    )


def accrue(
    profile: RewardsProfile,
    purchase_amount: Decimal | float | int,
    purchase_count: int = 1,
    *,
    threshold: int = FREE_GIFT_THRESHOLD,
    now: datetime | None = None,
) -> Accrual:
    if Decimal(str(purchase_amount)) < 0:
        raise ValueError(f"purchase amount cannot be negative, got {purchase_amount}")
    purchase_count = _whole(purchase_count, "purchase count")
    if purchase_count < 1:
        raise ValueError(f"purchase count must be at least 1, got {purchase_count}")

    # Upgrades apply from the next purchase: price this one at the current tier.
    previous_tier = tier_of(profile.total_purchases)
    points_earned = points_for(purchase_amount, previous_tier)

    total_purchases = profile.total_purchases + purchase_count
    cycle = cycle_of(total_purchases, threshold)

    updated = _revise(
        profile,
        points=profile.points + points_earned,
        lifetime_points=profile.lifetime_points + points_earned,
        total_purchases=total_purchases,
        tier=tier_of(total_purchases),
        free_gifts_earned=cycle.gifts_earned,
        purchases_until_free_gift=cycle.purchases_until_gift,
        last_updated=now or _utcnow(),
    )
    return Accrual(
        profile=updated,
        points_earned=points_earned,
        gift_just_earned=cycle.gifts_earned > profile.free_gifts_earned,
        previous_tier=previous_tier,
    )


def redeem_points(
    profile: RewardsProfile,
    amount: int,
    *,
    now: datetime | None = None,
) -> PointsRedemption | InsufficientPoints:
    amount = _whole(amount, "points to redeem")
    if amount <= 0 or amount > profile.points:
        return InsufficientPoints(requested=amount, available=profile.points)

    updated = _revise(profile, points=profile.points - amount, last_updated=now or _utcnow())
    return PointsRedemption(
        profile=updated,
        discount=Decimal(amount) / POINTS_PER_DISCOUNT_DOLLAR,
        points=amount,
    )


def redeem_free_gift(
    profile: RewardsProfile,
    *,
    now: datetime | None = None,
) -> GiftRedemption | NoGiftsAvailable:
    if profile.free_gifts_redeemed >= profile.free_gifts_earned:
        return NoGiftsAvailable(earned=profile.free_gifts_earned, redeemed=profile.free_gifts_redeemed)

    updated = _revise(profile, free_gifts_redeemed=profile.free_gifts_redeemed + 1, last_updated=now or _utcnow())
    return GiftRedemption(profile=updated)


__all__ = [
    "Accrual",
    "GiftRedemption",
    "InsufficientPoints",
    "NoGiftsAvailable",
    "POINTS_PER_DISCOUNT_DOLLAR",
    "POINTS_PER_DOLLAR",
    "PointsRedemption",
    "accrue",
    "points_for",
    "redeem_free_gift",
    "redeem_points",
    "with_derived",
]
