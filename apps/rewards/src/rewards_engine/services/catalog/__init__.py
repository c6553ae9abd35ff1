"""Offer and bundle selection over read-only reference data."""
