"""Configuration helpers for the course POI service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

__all__ = [
    "Settings",
    "coerce_boolish",
    "get_settings",
    "reset_settings_cache",
]

DEFAULT_GOLF_API_BASE_URL = "https://www.golfapi.io/api/v2.3"
DEFAULT_FRESHNESS_DAYS = 90


@dataclass(frozen=True)
class Settings:
    golf_api_key: str = ""
    golf_api_base_url: str = DEFAULT_GOLF_API_BASE_URL
    golf_api_timeout_s: float = 15.0
    freshness_days: int = DEFAULT_FRESHNESS_DAYS
    retry_cooldown_s: int = 300
    store_backend: str = "file"
    store_dir: str = "data/courses"
    supabase_url: str = ""
    supabase_key: str = ""

    @property
    def provider_enabled(self) -> bool:
        return bool(self.golf_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings resolved from the environment."""

    freshness = _int_env("COURSE_POI_FRESHNESS_DAYS", DEFAULT_FRESHNESS_DAYS)
    cooldown = _int_env("COURSE_POI_RETRY_COOLDOWN_S", 300)
    timeout = _float_env("GOLF_API_TIMEOUT_S", 15.0)
    return Settings(
        golf_api_key=os.getenv("GOLF_API_KEY", "").strip(),
        golf_api_base_url=os.getenv("GOLF_API_BASE_URL", DEFAULT_GOLF_API_BASE_URL)
        .strip()
        .rstrip("/"),
        golf_api_timeout_s=timeout if timeout > 0 else 15.0,
        freshness_days=freshness if freshness > 0 else DEFAULT_FRESHNESS_DAYS,
        retry_cooldown_s=max(0, cooldown),
        store_backend=os.getenv("COURSE_STORE_BACKEND", "file").strip().lower(),
        store_dir=os.getenv("COURSE_STORE_DIR", "data/courses"),
        supabase_url=os.getenv("SUPABASE_URL", "").strip(),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip(),
    )


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def coerce_boolish(value: Any) -> bool | None:
    """Attempt to coerce *value* into a boolean."""

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return None
