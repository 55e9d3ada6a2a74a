"""Environment-backed runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    app_name: str
    debug: bool
    log_verbosity: str
    cors_allow_origins: tuple[str, ...]
    supabase_url: str | None
    supabase_key: str | None
    storage_bucket: str
    rapidapi_key: str | None
    scraper_user_agent: str
    http_timeout: int


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _env_choice(name: str, default: str, *, allowed: set[str]) -> str:
    val = os.getenv(name)
    if val is None:
        return default
    normalized = val.strip().lower()
    if normalized in allowed:
        return normalized
    return default


def _env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        parsed = int(val.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    origins = tuple(
        origin.strip()
        for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
        if origin.strip()
    )
    return Settings(
        app_name=os.getenv("APP_NAME", "Marketplace Imports"),
        debug=_env_bool("DEBUG", default=False),
        log_verbosity=_env_choice(
            "LOG_VERBOSITY",
            default="medium",
            allowed={"low", "medium", "high", "extrahigh"},
        ),
        cors_allow_origins=origins or ("*",),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        storage_bucket=os.getenv("STORAGE_BUCKET", "product-images"),
        rapidapi_key=os.getenv("RAPIDAPI_KEY") or None,
        scraper_user_agent=os.getenv(
            "SCRAPER_USER_AGENT",
            "Mozilla/5.0 (compatible; MarketplaceImportBot/1.0)",
        ),
        http_timeout=_env_int("HTTP_TIMEOUT", 20),
    )


__all__ = ["Settings", "get_settings"]
