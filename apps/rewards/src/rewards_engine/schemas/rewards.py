"""Canonical wire/cache models for rewards state and reference data."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from rewards_engine.domain.rewards.gift_cycle import FREE_GIFT_THRESHOLD
from rewards_engine.domain.rewards.tiers import Tier
from rewards_engine.services.catalog.bundles import savings_for

# meta: schema: rewards-profile


class RewardsProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    points: int = Field(0, ge=0)
    lifetime_points: int = Field(0, ge=0, alias="lifetimePoints")
    total_purchases: int = Field(0, ge=0, alias="totalPurchases")
    tier: Tier = Tier.BRONZE
    free_gifts_earned: int = Field(0, ge=0, alias="freeGiftsEarned")
    free_gifts_redeemed: int = Field(0, ge=0, alias="freeGiftsRedeemed")
    purchases_until_free_gift: int = Field(FREE_GIFT_THRESHOLD, ge=1, alias="purchasesUntilFreeGift")
    last_updated: datetime | None = Field(None, alias="lastUpdated")

    @classmethod
    def zero(cls, threshold: int = FREE_GIFT_THRESHOLD) -> "RewardsProfile":
        """Defaults for a freshly authenticated (or logged out) member."""

        return cls(purchases_until_free_gift=threshold)

    @property
    def available_free_gifts(self) -> int:
        return max(self.free_gifts_earned - self.free_gifts_redeemed, 0)

    def to_cache(self) -> str:
        return self.model_dump_json(by_alias=True)


class OfferType(str, Enum):
    BOGO = "bogo"
    DISCOUNT = "discount"
    BUNDLE = "bundle"
    OTHER = "other"


class Offer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    type: OfferType = OfferType.OTHER
    title: str = ""
    description: str = ""
    product_category: str | None = Field(None, alias="productCategory")
    discount_percent: float = Field(0, ge=0, le=100, alias="discountPercent")
    min_quantity: int = Field(1, ge=1, alias="minQuantity")
    valid_until: datetime | None = Field(None, alias="validUntil")
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {member.value for member in OfferType}:
                return lowered
        return OfferType.OTHER


class BundleItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    quantity: int = Field(1, ge=1)
    original_price: Decimal = Field(Decimal("0"), ge=0, alias="originalPrice")


class Bundle(BaseModel):
    """Priced bundle; savings are always derived from the two prices."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    description: str = ""
    items: list[BundleItem] = Field(default_factory=list)
    original_price: Decimal = Field(..., ge=0, alias="originalPrice")
    bundle_price: Decimal = Field(..., ge=0, alias="bundlePrice")
    is_customizable: bool = Field(False, alias="isCustomizable")
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_prices(self) -> "Bundle":
        if self.bundle_price > self.original_price:
            raise ValueError("bundlePrice cannot exceed originalPrice")
        return self

    @computed_field(alias="savings")  # type: ignore[prop-decorator]
    @property
    def savings(self) -> Decimal:
        return savings_for(self.original_price, self.bundle_price)[0]

    @computed_field(alias="savingsPercent")  # type: ignore[prop-decorator]
    @property
    def savings_percent(self) -> int:
        return savings_for(self.original_price, self.bundle_price)[1]


__all__ = ["Bundle", "BundleItem", "Offer", "OfferType", "RewardsProfile"]
