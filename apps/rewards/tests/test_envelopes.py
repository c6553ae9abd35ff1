import pytest

from rewards_engine.domain.rewards.tiers import Tier
from rewards_engine.services.rewards.envelopes import (
    bundle_from_payload,
    bundles_from_payload,
    offers_from_payload,
    profile_from_payload,
    records_from_payload,
)
from rewards_engine.services.rewards.errors import RemoteUnavailable

_PROFILE = {"points": 120, "totalPurchases": 6, "freeGiftsEarned": 0, "freeGiftsRedeemed": 0, "lifetimePoints": 300}


@pytest.mark.parametrize(
    "payload",
    [
        _PROFILE,
        {"data": _PROFILE},
        {"success": True, "rewards": _PROFILE},
        {"data": {"profile": _PROFILE}},
        {
            "points": 120,
            "total_purchases": 6,
            "free_gifts_earned": 0,
            "free_gifts_redeemed": 0,
            "lifetime_points": 300,
        },
    ],
)
def test_profile_envelopes_normalize_to_one_shape(payload) -> None:
    profile = profile_from_payload(payload)
    assert profile.points == 120
    assert profile.total_purchases == 6
    assert profile.lifetime_points == 300


def test_remote_supplied_derived_fields_are_discarded() -> None:
    profile = profile_from_payload({**_PROFILE, "tier": "PLATINUM", "purchasesUntilFreeGift": 1})
    assert profile.tier == Tier.BRONZE
    assert profile.purchases_until_free_gift == 10


@pytest.mark.parametrize("payload", [None, [], "ok", {"success": True}, {"points": -5}])
def test_malformed_profiles_raise_remote_unavailable(payload) -> None:
    with pytest.raises(RemoteUnavailable) as excinfo:
        profile_from_payload(payload)
    assert excinfo.value.code == "malformed_response"


def test_offer_lists_unwrap_and_drop_invalid_entries() -> None:
    payload = {
        "offers": [
            {"id": "ok", "type": "bogo", "productCategory": "All"},
            {"type": "bogo"},
            {"id": "too-much", "discountPercent": 150},
        ]
    }
    offers = offers_from_payload(payload)
    assert [offer.id for offer in offers] == ["ok"]
    assert [offer.id for offer in offers_from_payload({"data": [{"id": "x"}]})] == ["x"]


def test_bundle_lists_drop_price_inversions() -> None:
    bundles = bundles_from_payload(
        [
            {"id": "good", "name": "Good", "originalPrice": 20, "bundlePrice": 15},
            {"id": "bad", "name": "Bad", "originalPrice": 10, "bundlePrice": 15},
        ]
    )
    assert [bundle.id for bundle in bundles] == ["good"]


def test_non_list_reference_payload_raises() -> None:
    with pytest.raises(RemoteUnavailable):
        bundles_from_payload({"message": "maintenance"})


def test_bundle_details_unwraps_envelope() -> None:
    bundle = bundle_from_payload({"bundle": {"id": "b1", "name": "B", "originalPrice": 10, "bundlePrice": 8}})
    assert bundle.id == "b1"
    assert bundle.savings_percent == 20


def test_records_keep_only_mappings() -> None:
    assert records_from_payload({"history": [{"id": 1}, "noise"]}, "history") == [{"id": 1}]
    assert records_from_payload(None) == []
