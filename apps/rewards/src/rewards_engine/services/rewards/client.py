"""HTTP client for the remote rewards authority."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx
from loguru import logger

from rewards_engine.core.settings import Settings, get_settings
from rewards_engine.services.rewards.errors import RemoteUnavailable


class RewardsApiClient:
    """Thin async wrapper over the rewards REST endpoints.

    Every method either returns the decoded JSON body or raises
    ``RemoteUnavailable``; callers decide whether that failure is fatal.
    Response bodies are returned raw and normalized by the sync layer.
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth_token: str | None = None,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth_token = auth_token
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = http_client is None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> "RewardsApiClient":
        resolved = settings or get_settings()
        return cls(
            resolved.rewards_api_base_url,
            auth_token=resolved.rewards_api_token,
            timeout_seconds=resolved.rewards_api_timeout_seconds,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RewardsApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth_token:
            token = self._auth_token
            headers["Authorization"] = token if token.lower().startswith("bearer ") else f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, json=json, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning(
                "Rewards API returned HTTP error",
                method=method,
                path=path,
                status=status,
                body=exc.response.text[:256],
            )
            raise RemoteUnavailable(f"{method} {path} failed with HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.warning("Rewards API request failed", method=method, path=path, error=str(exc))
            raise RemoteUnavailable(f"{method} {path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteUnavailable(f"{method} {path} returned undecodable JSON", code="malformed_response") from exc

    async def get_user_rewards(self) -> Any:
        return await self._request("GET", "/api/rewards/user")

    async def update_rewards(self, *, points_earned: int, purchase_amount: Decimal, purchase_count: int) -> Any:
        payload = {
            "pointsEarned": points_earned,
            "purchaseAmount": float(purchase_amount),
            "purchaseCount": purchase_count,
        }
        return await self._request("POST", "/api/rewards/update", json=payload)

    async def redeem_free_gift(self) -> Any:
        return await self._request("POST", "/api/rewards/redeem-gift")

    async def redeem_points(self, points: int) -> Any:
        return await self._request("POST", "/api/rewards/redeem-points", json={"points": points})

    async def get_special_offers(self) -> Any:
        return await self._request("GET", "/api/rewards/offers")

    async def get_bundles(self) -> Any:
        return await self._request("GET", "/api/rewards/bundles")

    async def get_bundle_details(self, bundle_id: str) -> Any:
        return await self._request("GET", f"/api/rewards/bundles/{bundle_id}")

    async def apply_bogo_offer(self, offer_id: str, product_id: str) -> Any:
        return await self._request(
            "POST",
            "/api/rewards/apply-bogo",
            json={"offerId": offer_id, "productId": product_id},
        )

    async def get_rewards_history(self) -> Any:
        return await self._request("GET", "/api/rewards/history")

    async def get_free_gift_options(self) -> Any:
        return await self._request("GET", "/api/rewards/free-gifts")


__all__ = ["RewardsApiClient"]
