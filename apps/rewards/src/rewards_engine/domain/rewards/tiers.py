"""Membership tier table and lookups."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Tier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


@dataclass(frozen=True, slots=True)
class TierRule:
    tier: Tier
    name: str
    min_purchases: int
    multiplier: Decimal
    color: str


# Ascending by min_purchases.
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(Tier.BRONZE, "Bronze", 0, Decimal("1"), "#CD7F32"),
    TierRule(Tier.SILVER, "Silver", 5, Decimal("1.5"), "#C0C0C0"),
    TierRule(Tier.GOLD, "Gold", 10, Decimal("2"), "#FFD700"),
    TierRule(Tier.PLATINUM, "Platinum", 20, Decimal("3"), "#E5E4E2"),
)

_RULES_BY_TIER = {rule.tier: rule for rule in TIER_RULES}


def rule_for(tier: Tier) -> TierRule:
    return _RULES_BY_TIER[Tier(tier)]


def tier_of(total_purchases: int) -> Tier:
    """Return the highest tier whose threshold does not exceed ``total_purchases``."""

    resolved = TIER_RULES[0].tier
    for rule in TIER_RULES:
        if total_purchases >= rule.min_purchases:
            resolved = rule.tier
    return resolved


def multiplier_of(tier: Tier) -> Decimal:
    return rule_for(tier).multiplier


def next_tier(tier: Tier) -> Tier | None:
    tiers = [rule.tier for rule in TIER_RULES]
    index = tiers.index(Tier(tier))
    if index + 1 >= len(tiers):
        return None
    return tiers[index + 1]


def purchases_to_next_tier(total_purchases: int) -> int | None:
    upcoming = next_tier(tier_of(total_purchases))
    if upcoming is None:
        return None
    return rule_for(upcoming).min_purchases - total_purchases


__all__ = [
    "TIER_RULES",
    "Tier",
    "TierRule",
    "multiplier_of",
    "next_tier",
    "purchases_to_next_tier",
    "rule_for",
    "tier_of",
]
