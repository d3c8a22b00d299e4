from __future__ import annotations

import pytest

from coursepoi.config import (
    DEFAULT_GOLF_API_BASE_URL,
    Settings,
    coerce_boolish,
    get_settings,
    reset_settings_cache,
)


def test_defaults_without_environment(monkeypatch):
    for name in (
        "GOLF_API_BASE_URL",
        "GOLF_API_TIMEOUT_S",
        "COURSE_POI_FRESHNESS_DAYS",
        "COURSE_POI_RETRY_COOLDOWN_S",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()

    settings = get_settings()

    assert settings.golf_api_key == ""
    assert settings.provider_enabled is False
    assert settings.golf_api_base_url == DEFAULT_GOLF_API_BASE_URL
    assert settings.golf_api_timeout_s == 15.0
    assert settings.freshness_days == 90
    assert settings.retry_cooldown_s == 300
    assert settings.store_backend == "file"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GOLF_API_KEY", "  abc123 ")
    monkeypatch.setenv("GOLF_API_BASE_URL", "https://mirror.test/api/")
    monkeypatch.setenv("GOLF_API_TIMEOUT_S", "4.5")
    monkeypatch.setenv("COURSE_POI_FRESHNESS_DAYS", "30")
    monkeypatch.setenv("COURSE_POI_RETRY_COOLDOWN_S", "0")
    monkeypatch.setenv("COURSE_STORE_BACKEND", "Supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
    reset_settings_cache()

    settings = get_settings()

    assert settings.golf_api_key == "abc123"
    assert settings.provider_enabled is True
    assert settings.golf_api_base_url == "https://mirror.test/api"
    assert settings.golf_api_timeout_s == 4.5
    assert settings.freshness_days == 30
    assert settings.retry_cooldown_s == 0
    assert settings.store_backend == "supabase"
    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.supabase_key == "service"


@pytest.mark.parametrize(
    "name, value, attr, expected",
    [
        ("COURSE_POI_FRESHNESS_DAYS", "soon", "freshness_days", 90),
        ("COURSE_POI_FRESHNESS_DAYS", "0", "freshness_days", 90),
        ("COURSE_POI_FRESHNESS_DAYS", "-5", "freshness_days", 90),
        ("COURSE_POI_RETRY_COOLDOWN_S", "-1", "retry_cooldown_s", 0),
        ("COURSE_POI_RETRY_COOLDOWN_S", "x", "retry_cooldown_s", 300),
        ("GOLF_API_TIMEOUT_S", "fast", "golf_api_timeout_s", 15.0),
        ("GOLF_API_TIMEOUT_S", "0", "golf_api_timeout_s", 15.0),
    ],
)
def test_invalid_values_fall_back(monkeypatch, name, value, attr, expected):
    monkeypatch.setenv(name, value)
    reset_settings_cache()
    assert getattr(get_settings(), attr) == expected


def test_settings_are_cached_until_reset(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("COURSE_POI_FRESHNESS_DAYS", "12")
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings().freshness_days == 12


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(AttributeError):
        settings.freshness_days = 1  # type: ignore[misc]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("true", True),
        (" YES ", True),
        ("1", True),
        ("off", False),
        ("0", False),
        (True, True),
        (0, False),
        (None, None),
        ("maybe", None),
        ([], None),
    ],
)
def test_coerce_boolish(value, expected):
    assert coerce_boolish(value) is expected
