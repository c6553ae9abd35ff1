"""Drive the rewards engine from a terminal.

Example:
    python -m rewards_engine purchase 24.50 --count 1
    python -m rewards_engine offers --category "Sea Moss"

Each invocation loads the profile (remote first, cache second), runs one
action, waits for the remote propagation it scheduled and prints JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from decimal import Decimal
from typing import Any, Sequence

from loguru import logger

from rewards_engine.core.logging import configure_logging
from rewards_engine.core.settings import Settings, get_settings
from rewards_engine.db.session import create_cache_engine, create_session_factory, init_cache_schema
from rewards_engine.domain.rewards.ledger import InsufficientPoints, NoGiftsAvailable
from rewards_engine.domain.rewards.tiers import purchases_to_next_tier, rule_for
from rewards_engine.services.catalog.offers import bogo_label
from rewards_engine.services.rewards import LocalCacheStore, RewardsApiClient, RewardsStore, SyncCoordinator


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rewards_engine", description="Inspect and update loyalty rewards")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="Print the current rewards profile.")

    purchase = commands.add_parser("purchase", help="Record a completed purchase.")
    purchase.add_argument("amount", type=Decimal, help="Purchase amount in USD.")
    purchase.add_argument("--count", type=int, default=1, help="Number of purchases to record.")

    redeem_points = commands.add_parser("redeem-points", help="Convert points into a discount.")
    redeem_points.add_argument("points", type=int)

    commands.add_parser("redeem-gift", help="Claim one earned free gift.")

    offers = commands.add_parser("offers", help="List special offers.")
    offers.add_argument("--category", help="Only show the BOGO offer matching this product category.")

    commands.add_parser("bundles", help="List bundles and the featured bundle.")
    commands.add_parser("logout", help="Reset the local rewards cache.")
    return parser.parse_args(argv)


def _profile_view(store: RewardsStore) -> dict[str, Any]:
    profile = store.profile
    rule = rule_for(profile.tier)
    return {
        **profile.model_dump(mode="json", by_alias=True),
        "tierName": rule.name,
        "availableFreeGifts": store.available_free_gifts,
        "purchasesToNextTier": purchases_to_next_tier(profile.total_purchases),
        "state": store.state.value,
        "unavailable": store.unavailable,
    }


async def _run(args: argparse.Namespace, settings: Settings) -> tuple[int, dict[str, Any]]:
    engine = create_cache_engine(settings.cache_database_url)
    await init_cache_schema(engine)
    cache = LocalCacheStore(create_session_factory(engine))

    try:
        async with RewardsApiClient.from_settings(settings) as client:
            store = RewardsStore(
                SyncCoordinator.from_settings(client, cache, settings),
                featured_min_savings_percent=settings.featured_bundle_min_savings_percent,
            )
            if args.command == "logout":
                await store.logout()
                return 0, {"state": store.state.value}

            await store.load()
            exit_code, output = await _dispatch(args, store)
            await store.wait_for_sync()
            return exit_code, output
    finally:
        await engine.dispose()


async def _dispatch(args: argparse.Namespace, store: RewardsStore) -> tuple[int, dict[str, Any]]:
    if args.command == "purchase":
        accrual = await store.record_purchase(args.amount, args.count)
        return 0, {
            "pointsEarned": accrual.points_earned,
            "giftJustEarned": accrual.gift_just_earned,
            "profile": _profile_view(store),
        }

    if args.command == "redeem-points":
        outcome = await store.redeem_points(args.points)
        if isinstance(outcome, InsufficientPoints):
            return 1, {"success": False, "message": outcome.message, "available": outcome.available}
        return 0, {"success": True, "discount": str(outcome.discount), "profile": _profile_view(store)}

    if args.command == "redeem-gift":
        outcome = await store.redeem_free_gift()
        if isinstance(outcome, NoGiftsAvailable):
            return 1, {"success": False, "message": outcome.message}
        return 0, {"success": True, "message": "Free gift redeemed!", "profile": _profile_view(store)}

    if args.command == "offers":
        offers = await store.refresh_offers()
        if args.category:
            match = store.bogo_offer_for({"category": args.category})
            if match is None:
                return 0, {"match": None}
            return 0, {"match": match.model_dump(mode="json", by_alias=True), "label": bogo_label(match)}
        return 0, {"offers": [offer.model_dump(mode="json", by_alias=True) for offer in offers]}

    if args.command == "bundles":
        bundles = await store.refresh_bundles()
        featured = store.featured_bundle()
        return 0, {
            "bundles": [bundle.model_dump(mode="json", by_alias=True) for bundle in bundles],
            "featured": featured.id if featured is not None and store.is_featurable(featured) else None,
        }

    return 0, _profile_view(store)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(
        service_name=settings.service_name,
        environment=settings.environment,
        version=settings.version,
        level=settings.log_level,
    )
    exit_code, output = asyncio.run(_run(args, settings))
    print(json.dumps(output, indent=2, default=str))
    logger.debug("Rewards command finished", command=args.command, exit_code=exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
