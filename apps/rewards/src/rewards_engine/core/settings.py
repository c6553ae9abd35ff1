from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    service_name: str = "rewards-engine"
    version: str = "0.1.0"
    log_level: str = "INFO"

    # Remote rewards authority
    rewards_api_base_url: str = "https://localhost:443"
    rewards_api_timeout_seconds: float = 10.0
    rewards_api_token: str | None = None

    # On-device cache
    cache_database_url: str = "sqlite+aiosqlite:///./rewards_cache.db"
    rewards_cache_key: str = "rewards_cache"
    offers_cache_key: str = "rewards_offers_cache"
    bundles_cache_key: str = "rewards_bundles_cache"

    # Program rules
    free_gift_threshold: int = Field(10, ge=1)
    featured_bundle_min_savings_percent: int = Field(25, ge=0, le=100)

    @field_validator("rewards_api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("rewards_api_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
