"""Loyalty rewards state engine: tiers, points, free-gift cycle and offline sync."""

__version__ = "0.1.0"
