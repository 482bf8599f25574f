"""
siteorder.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, remote function key).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SITEORDER_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "siteorder"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "siteorder"
    jwt_audience: str = "siteorder-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./siteorder.db"

    # Remote domain availability function (invoked with {"query": ...}).
    domain_check_url: str = "http://localhost:54321/functions/v1/domainr-check"
    domain_check_api_key: str = Field(default="", repr=False)
    domain_check_timeout_s: float = 10.0

    # Ordering
    max_subscription_years: int = 10


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()
