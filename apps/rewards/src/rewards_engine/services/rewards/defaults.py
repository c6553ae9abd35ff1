"""Static reference data shown when neither the remote nor the cache has any."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from rewards_engine.schemas.rewards import Bundle, BundleItem, Offer, OfferType


def default_offers(now: datetime | None = None) -> list[Offer]:
    current = now or datetime.now(timezone.utc)
    return [
        Offer(
            id="bogo-seamoss",
            type=OfferType.BOGO,
            title="Buy 1 Get 1 FREE",
            description="Sea Moss Soap - Buy one, get one free!",
            product_category="Sea Moss",
            discount_percent=100,
            min_quantity=1,
            active=True,
            valid_until=current + timedelta(days=30),
        ),
        Offer(
            id="bogo-any",
            type=OfferType.BOGO,
            title="Weekend Special",
            description="Buy any 2 soaps, get the 3rd 50% off!",
            product_category="All",
            discount_percent=50,
            min_quantity=2,
            active=True,
            valid_until=current + timedelta(days=7),
        ),
    ]


def default_bundles() -> list[Bundle]:
    return [
        Bundle(
            id="bundle-sampler",
            name="Sisters Sampler Bundle",
            description="Try our best sellers! Includes Pink Soap, Kush Soap, and Sea Moss Soap.",
            items=[
                BundleItem(name="Pink Soap", quantity=1, original_price=Decimal("12.99")),
                BundleItem(name="Kush Soap", quantity=1, original_price=Decimal("12.99")),
                BundleItem(name="Sea Moss Soap", quantity=1, original_price=Decimal("14.99")),
            ],
            original_price=Decimal("40.97"),
            bundle_price=Decimal("32.99"),
        ),
        Bundle(
            id="bundle-seamoss-3",
            name="Sea Moss Triple Pack",
            description="Stock up on our popular Sea Moss Soap! 3 bars at a great price.",
            items=[BundleItem(name="Sea Moss Soap", quantity=3, original_price=Decimal("44.97"))],
            original_price=Decimal("44.97"),
            bundle_price=Decimal("36.99"),
        ),
        Bundle(
            id="bundle-mix-10",
            name="Mix & Match 10-Pack",
            description="Choose any 10 soaps and save big! Perfect for gifts or stocking up.",
            items=[BundleItem(name="Any Soap (Your Choice)", quantity=10, original_price=Decimal("129.90"))],
            original_price=Decimal("129.90"),
            bundle_price=Decimal("89.99"),
            is_customizable=True,
        ),
    ]


__all__ = ["default_bundles", "default_offers"]
