"""Shared pytest fixtures for course POI tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List

import pytest
from fastapi.testclient import TestClient

from coursepoi.app import app
from coursepoi.config import Settings, reset_settings_cache
from coursepoi.courses import CoursePOIService, CourseRecord, FileCourseStore
from coursepoi.courses import service as service_module
from coursepoi.courses.service import get_poi_service
from coursepoi.telemetry import set_poi_telemetry_emitter

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def coordinate(hole: Any, lat: Any, lng: Any, poi: Any, **extra: Any) -> dict:
    payload = {"hole": hole, "latitude": lat, "longitude": lng, "poi": poi}
    payload.update(extra)
    return payload


SAMPLE_COORDINATES: List[dict] = [
    coordinate(1, 40.0, -74.0, 11),
    coordinate(1, 40.001, -74.001, 1, location=2),
    coordinate(1, 40.0012, -74.0012, 2, sideFW=1, location=1),
    coordinate(2, 40.01, -74.01, 4),
    coordinate(2, 40.011, -74.011, 1, location=3),
]


class StubFetcher:
    """Callable fetcher replaying canned responses; exceptions are raised."""

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses) or [SAMPLE_COORDINATES]
        self.calls: List[str] = []

    def __call__(self, provider_course_id: str) -> List[Any]:
        self.calls.append(provider_course_id)
        if len(self._responses) > 1:
            response = self._responses.pop(0)
        else:
            response = self._responses[0]
        if isinstance(response, BaseException):
            raise response
        return list(response)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self._value = start

    def now(self) -> datetime:
        return self._value

    def advance(self, **delta: float) -> datetime:
        self._value += timedelta(**delta)
        return self._value


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("COURSE_STORE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("COURSE_STORE_BACKEND", "file")
    monkeypatch.delenv("GOLF_API_KEY", raising=False)
    reset_settings_cache()
    get_poi_service.cache_clear()
    set_poi_telemetry_emitter(None)
    yield
    reset_settings_cache()
    get_poi_service.cache_clear()
    set_poi_telemetry_emitter(None)


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock(NOW)
    monkeypatch.setattr(service_module, "_now", fake.now)
    return fake


@pytest.fixture
def settings() -> Settings:
    return Settings(golf_api_key="test-key", freshness_days=90, retry_cooldown_s=300)


@pytest.fixture
def store(tmp_path) -> FileCourseStore:
    return FileCourseStore(tmp_path / "courses")


@pytest.fixture
def seed_course(store) -> Callable[..., CourseRecord]:
    def _seed(
        course_id: str = "pebble",
        *,
        api_course_id: str | None = "api-pebble",
        poi: Iterable[Any] | None = None,
        updated_at: datetime | None = None,
        poi_attempted_at: datetime | None = None,
    ) -> CourseRecord:
        record = CourseRecord(
            id=course_id,
            name=course_id.title(),
            api_course_id=api_course_id,
            poi=list(poi) if poi is not None else None,
            updated_at=updated_at,
            poi_attempted_at=poi_attempted_at,
        )
        return store.save_course(record)

    return _seed


@pytest.fixture
def make_service(store, settings) -> Callable[..., CoursePOIService]:
    def _make(fetcher: Callable[[str], List[Any]] | None = None, **overrides: Any):
        effective = replace(settings, **overrides)
        return CoursePOIService(
            store, fetcher=fetcher or StubFetcher(), settings=effective
        )

    return _make


@pytest.fixture
def poi_client(make_service):
    holder: dict[str, CoursePOIService] = {}

    def _build(
        fetcher: Callable[[str], List[Any]] | None = None, **overrides: Any
    ) -> TestClient:
        holder["service"] = make_service(fetcher, **overrides)
        app.dependency_overrides[get_poi_service] = lambda: holder["service"]
        return TestClient(app)

    yield _build
    app.dependency_overrides.pop(get_poi_service, None)
