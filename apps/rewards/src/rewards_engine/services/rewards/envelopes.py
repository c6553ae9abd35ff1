"""Normalize historical response envelopes into canonical rewards models."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from rewards_engine.schemas.rewards import Bundle, Offer, RewardsProfile
from rewards_engine.services.rewards.errors import RemoteUnavailable

ModelT = TypeVar("ModelT", bound=BaseModel)

_PROFILE_ENVELOPE_KEYS = ("data", "rewards", "profile")
_PROFILE_FIELDS = frozenset(
    {
        "points",
        "totalPurchases",
        "total_purchases",
        "lifetimePoints",
        "lifetime_points",
        "freeGiftsEarned",
        "free_gifts_earned",
        "freeGiftsRedeemed",
        "free_gifts_redeemed",
    }
)
# Values the remote is not trusted to supply; they are recomputed locally.
_DERIVED_FIELDS = frozenset({"tier", "purchasesUntilFreeGift", "purchases_until_free_gift", "lastUpdated", "last_updated"})


def unwrap_object(payload: Any, keys: Iterable[str] = _PROFILE_ENVELOPE_KEYS) -> Mapping[str, Any] | None:
    """Peel ``{"data": {...}}``-style wrappers until a mapping with profile fields remains."""

    current = payload
    for _ in range(3):
        if not isinstance(current, Mapping):
            return None
        if _PROFILE_FIELDS.intersection(current.keys()):
            return current
        current = next((current[key] for key in keys if isinstance(current.get(key), Mapping)), None)
    return None


def unwrap_list(payload: Any, *keys: str) -> list[Any] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in (*keys, "data", "items", "results"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
            if isinstance(value, Mapping):
                nested = unwrap_list(value, *keys)
                if nested is not None:
                    return nested
    return None


def profile_from_payload(payload: Any) -> RewardsProfile:
    record = unwrap_object(payload)
    if record is None:
        raise RemoteUnavailable("Rewards profile response was not an object", code="malformed_response")
    cleaned = {key: value for key, value in record.items() if key not in _DERIVED_FIELDS}
    try:
        return RewardsProfile.model_validate(cleaned)
    except ValidationError as exc:
        raise RemoteUnavailable(
            f"Rewards profile response failed validation: {exc.error_count()} error(s)",
            code="malformed_response",
        ) from exc


def _models_from_list(model: type[ModelT], entries: list[Any], kind: str) -> list[ModelT]:
    parsed: list[ModelT] = []
    for index, entry in enumerate(entries):
        try:
            parsed.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "Dropping invalid rewards entry",
                kind=kind,
                index=index,
                entry_id=entry.get("id") if isinstance(entry, Mapping) else None,
                errors=exc.error_count(),
            )
    return parsed


def offers_from_payload(payload: Any) -> list[Offer]:
    entries = unwrap_list(payload, "offers", "specialOffers")
    if entries is None:
        raise RemoteUnavailable("Offers response was not a list", code="malformed_response")
    return _models_from_list(Offer, entries, "offer")


def bundles_from_payload(payload: Any) -> list[Bundle]:
    entries = unwrap_list(payload, "bundles")
    if entries is None:
        raise RemoteUnavailable("Bundles response was not a list", code="malformed_response")
    return _models_from_list(Bundle, entries, "bundle")


def bundle_from_payload(payload: Any) -> Bundle:
    record = payload
    if isinstance(payload, Mapping) and "originalPrice" not in payload and "original_price" not in payload:
        record = next(
            (payload[key] for key in ("bundle", "data") if isinstance(payload.get(key), Mapping)),
            payload,
        )
    try:
        return Bundle.model_validate(record)
    except ValidationError as exc:
        raise RemoteUnavailable("Bundle details response failed validation", code="malformed_response") from exc


def records_from_payload(payload: Any, *keys: str) -> list[dict[str, Any]]:
    entries = unwrap_list(payload, *keys) or []
    return [dict(entry) for entry in entries if isinstance(entry, Mapping)]


__all__ = [
    "bundle_from_payload",
    "bundles_from_payload",
    "offers_from_payload",
    "profile_from_payload",
    "records_from_payload",
    "unwrap_list",
    "unwrap_object",
]
