"""Bundle savings arithmetic and featured-bundle selection."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from rewards_engine.schemas.rewards import Bundle

FEATURABLE_SAVINGS_PERCENT = 25


def savings_for(original_price: Decimal, bundle_price: Decimal) -> tuple[Decimal, int]:
    """Return ``(savings, savings_percent)``; the percent rounds half up."""

    savings = original_price - bundle_price
    if original_price <= 0:
        return savings, 0
    percent = (savings / original_price * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return savings, int(percent)


def featured(bundles: Iterable["Bundle"]) -> "Bundle | None":
    best: Bundle | None = None
    for bundle in bundles:
        # strict comparison keeps the earliest bundle on ties
        if best is None or bundle.savings_percent > best.savings_percent:
            best = bundle
    return best


def is_featurable(bundle: "Bundle", min_percent: int = FEATURABLE_SAVINGS_PERCENT) -> bool:
    return bundle.savings_percent >= min_percent


__all__ = ["FEATURABLE_SAVINGS_PERCENT", "featured", "is_featurable", "savings_for"]
