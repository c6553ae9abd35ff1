from .rewards import Bundle, BundleItem, Offer, OfferType, RewardsProfile  # noqa: F401
