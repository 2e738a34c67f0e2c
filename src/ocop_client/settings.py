"""
ocop_client.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings shared by the session core, the resolver and the dev backend.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for composition roots.
"""

from __future__ import annotations

import enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSurface(enum.StrEnum):
    # Each surface talks to a different pair of auth endpoints on the same backend.
    web_admin = "web_admin"
    mobile_admin = "mobile_admin"
    storefront = "storefront"


class Settings(BaseSettings):
    """
    One settings object per client process:
    - Gateway and resolver share `api_base_url`
    - Credential persistence is file-backed when `credential_store_path` is set
    """

    model_config = SettingsConfigDict(env_prefix="OCOP_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "ocop-client"
    log_level: str = "INFO"

    surface: ClientSurface = ClientSurface.web_admin

    # Backend API root; image paths are served from the same origin without the suffix.
    api_base_url: str = "http://localhost:5000/api"
    api_suffix: str = "/api"
    placeholder_image_url: str = "https://via.placeholder.com/400x300?text=No+Image"
    http_timeout_seconds: float = 30.0
    http_retries: int = Field(default=3, ge=0)

    # Credential persistence
    credential_store_path: Path | None = None
    credential_store_key: str = "admin_token"

    # Dev backend
    api_host: str = "127.0.0.1"
    api_port: int = 5000
    jwt_alg: str = "HS256"
    jwt_issuer: str = "ocop-backend"
    jwt_audience: str = "ocop-clients"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    jwt_ttl_minutes: int = 7 * 24 * 60


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every surface builds its runtime from this object (see `ocop_client.runtime`); tests
# construct `Settings(...)` directly instead of going through the cache.
