"""Free gift every N purchases."""

from __future__ import annotations

from dataclasses import dataclass

FREE_GIFT_THRESHOLD = 10


@dataclass(frozen=True, slots=True)
class GiftCycle:
    purchases_until_gift: int
    gifts_earned: int

    def just_earned(self, threshold: int = FREE_GIFT_THRESHOLD) -> bool:
        """A full bar: the last purchase completed a cycle."""

        return self.gifts_earned > 0 and self.purchases_until_gift == threshold


def _check_threshold(threshold: int) -> None:
    if threshold < 1:
        raise ValueError(f"free gift threshold must be at least 1, got {threshold}")


def cycle_of(total_purchases: int, threshold: int = FREE_GIFT_THRESHOLD) -> GiftCycle:
    _check_threshold(threshold)
    if total_purchases < 0:
        raise ValueError(f"total purchases cannot be negative, got {total_purchases}")
    return GiftCycle(
        purchases_until_gift=threshold - (total_purchases % threshold),
        gifts_earned=total_purchases // threshold,
    )


def progress_percent(purchases_until_gift: int, threshold: int = FREE_GIFT_THRESHOLD) -> float:
    """Fill level of the gift progress bar; a value of ``threshold`` renders as empty."""

    _check_threshold(threshold)
    return (threshold - purchases_until_gift) / threshold * 100


__all__ = ["FREE_GIFT_THRESHOLD", "GiftCycle", "cycle_of", "progress_percent"]
