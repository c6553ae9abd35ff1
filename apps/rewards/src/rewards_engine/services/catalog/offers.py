from __future__ import annotations

from typing import Any, Iterable, Mapping

from rewards_engine.schemas.rewards import Offer, OfferType

ALL_CATEGORIES = "All"


def _clean(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _category_of(product: Any) -> str | None:
    if product is None:
        return None
    if isinstance(product, Mapping):
        return _clean(product.get("category"))
    return _clean(getattr(product, "category", None))


def match_bogo(offers: Iterable[Offer], product: Any) -> Offer | None:
    """First active BOGO offer covering the product's category, in list order."""

    category = _category_of(product)
    if category is None:
        return None
    for offer in offers:
        if not offer.active or offer.type is not OfferType.BOGO:
            continue
        offer_category = _clean(offer.product_category)
        if offer_category == ALL_CATEGORIES or offer_category == category:
            return offer
    return None


def bogo_label(offer: Offer) -> str:
    if offer.discount_percent >= 100:
        return "BOGO FREE"
    return f"BOGO {offer.discount_percent:g}% OFF"


__all__ = ["ALL_CATEGORIES", "bogo_label", "match_bogo"]
