"""Pure reward arithmetic: tiers, gift cycle and the points ledger."""

from .gift_cycle import FREE_GIFT_THRESHOLD, GiftCycle, cycle_of, progress_percent  # noqa: F401
from .tiers import TIER_RULES, Tier, TierRule, multiplier_of, next_tier, purchases_to_next_tier, tier_of  # noqa: F401
