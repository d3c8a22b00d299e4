"""Freshness policy and cache upsert for course POI.

A course's POI is served from the store while it is younger than the freshness
window. Otherwise it is re-fetched from the provider, normalized and replaced
wholesale. Cached data always wins over an error: a failed or empty refresh
returns whatever the store already holds and only raises when there is nothing
to fall back on.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from coursepoi.config import Settings, get_settings
from coursepoi.metrics import POI_FETCH_LATENCY, POI_LOOKUPS
from coursepoi.providers import ProviderError, fetch_coordinates
from coursepoi.telemetry import record_refresh

from .errors import CourseNotFoundError, EmptyResultError, StorageError
from .normalize import normalize_report
from .schemas import CoursePOI, CourseRecord
from .store import CourseStore, build_store

_LOG = logging.getLogger(__name__)

Fetcher = Callable[[str], List[Any]]


class CacheState(str, Enum):
    MISSING = "missing"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class POILookup:
    poi: CoursePOI
    state: CacheState
    refreshed: bool = False
    stale: bool = False
    error: Optional[str] = None
    storage_error: Optional[StorageError] = None


class CoursePOIService:
    def __init__(
        self,
        store: CourseStore,
        *,
        fetcher: Fetcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._fetcher = fetcher or self._fetch_from_provider
        self._freshness = timedelta(days=self._settings.freshness_days)
        self._cooldown = timedelta(seconds=self._settings.retry_cooldown_s)
        self._inflight: Dict[str, "Future[POILookup]"] = {}
        self._inflight_lock = threading.Lock()

    def _fetch_from_provider(self, provider_course_id: str) -> List[Any]:
        return fetch_coordinates(provider_course_id, settings=self._settings)

    # Lookups
    def get_course_poi(self, course_id: str, force_refresh: bool = False) -> CoursePOI:
        return self.lookup(course_id, force_refresh=force_refresh).poi

    def lookup(
        self,
        course_id: str | None = None,
        *,
        api_course_id: str | None = None,
        force_refresh: bool = False,
    ) -> POILookup:
        record = self.resolve_course(course_id, api_course_id=api_course_id)
        now = _now()
        state = self.cache_state(record, now=now, force_refresh=force_refresh)
        POI_LOOKUPS.labels(state=state.value).inc()

        if state is CacheState.FRESH:
            return POILookup(poi=record.to_course_poi(), state=state)

        if not self.can_fetch(record):
            _LOG.info(
                "course %s: provider not configured or no provider id, "
                "serving stored poi as is",
                record.id,
            )
            return POILookup(
                poi=record.to_course_poi(), state=state, stale=record.has_poi
            )

        return self._coalesced_refresh(record, state, force_refresh=force_refresh)

    def can_fetch(self, record: CourseRecord) -> bool:
        return self._settings.provider_enabled and bool(record.api_course_id)

    def resolve_course(
        self, course_id: str | None, *, api_course_id: str | None = None
    ) -> CourseRecord:
        record: Optional[CourseRecord] = None
        if course_id:
            record = self._store.get(course_id)
        elif api_course_id:
            record = self._store.find_by_api_id(api_course_id)
        if record is None:
            raise CourseNotFoundError(course_id or api_course_id or "")
        return record

    def cache_state(
        self, record: CourseRecord, *, now: datetime, force_refresh: bool = False
    ) -> CacheState:
        if record.poi is None:
            return CacheState.MISSING
        if force_refresh or not record.poi:
            return CacheState.STALE
        if record.updated_at is not None:
            age = now - _ensure_aware(record.updated_at)
            if age > self._freshness:
                _LOG.info(
                    "course %s: poi is stale, last updated %d days ago",
                    record.id,
                    age.days,
                )
                return CacheState.STALE
        return CacheState.FRESH

    def _in_cooldown(self, record: CourseRecord, now: datetime) -> bool:
        if not record.has_poi or record.poi_attempted_at is None:
            return False
        attempted = _ensure_aware(record.poi_attempted_at)
        if record.updated_at is not None and attempted <= _ensure_aware(
            record.updated_at
        ):
            return False
        return now - attempted < self._cooldown

    # Refresh
    def _coalesced_refresh(
        self, record: CourseRecord, state: CacheState, *, force_refresh: bool = False
    ) -> POILookup:
        with self._inflight_lock:
            future = self._inflight.get(record.id)
            leader = future is None
            if future is None:
                future = Future()
                self._inflight[record.id] = future

        if not leader:
            _LOG.debug("course %s: joining in-flight refresh", record.id)
            return future.result()

        try:
            result = self._refresh_if_needed(record, state, force_refresh)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._inflight_lock:
                self._inflight.pop(record.id, None)

    def _refresh_if_needed(
        self, record: CourseRecord, state: CacheState, force_refresh: bool
    ) -> POILookup:
        now = _now()
        if not force_refresh:
            # A refresh for this course may have finished after the caller's read.
            current = self._store.get(record.id)
            if current is not None:
                record = current
                state = self.cache_state(record, now=now)
                if state is CacheState.FRESH:
                    _LOG.debug("course %s: already refreshed, serving cache", record.id)
                    return POILookup(poi=record.to_course_poi(), state=state)

        if self._in_cooldown(record, now):
            _LOG.info(
                "course %s: last refresh attempt %s is within cooldown, serving cache",
                record.id,
                record.poi_attempted_at,
            )
            return POILookup(poi=record.to_course_poi(), state=state, stale=True)

        return self._refresh(record, state)

    def _refresh(self, record: CourseRecord, state: CacheState) -> POILookup:
        started = time.perf_counter()
        provider_id = record.api_course_id or ""
        _LOG.info("course %s: fetching poi from provider (%s)", record.id, provider_id)

        try:
            with POI_FETCH_LATENCY.time():
                raw = self._fetcher(provider_id)
        except ProviderError as exc:
            record_refresh(
                record.id,
                "provider_error",
                duration_ms=_elapsed_ms(started),
                error=str(exc),
            )
            self._mark_attempt(record)
            if not record.has_poi:
                raise
            _LOG.warning(
                "course %s: returning cached poi despite provider error: %s",
                record.id,
                exc,
            )
            return POILookup(
                poi=record.to_course_poi(), state=state, stale=True, error=str(exc)
            )

        report = normalize_report(record.id, raw)
        if not report.holes:
            empty = EmptyResultError(record.id, report.received)
            record_refresh(
                record.id,
                "empty",
                duration_ms=_elapsed_ms(started),
                skipped=report.skipped,
                dropped=report.dropped,
                error=str(empty),
            )
            self._mark_attempt(record)
            if not record.has_poi:
                raise empty
            _LOG.warning("course %s: %s, keeping cached poi", record.id, empty)
            return POILookup(
                poi=record.to_course_poi(), state=state, stale=True, error=str(empty)
            )

        refreshed_at = _now()
        fresh = CoursePOI(
            course_id=record.id, holes=report.holes, last_refreshed=refreshed_at
        )
        outcome = "refreshed"
        storage_error: Optional[StorageError] = None
        try:
            self._store.replace_poi(record.id, report.holes, refreshed_at)
        except StorageError as exc:
            _LOG.error("course %s: failed to persist poi: %s", record.id, exc)
            outcome = "storage_error"
            storage_error = exc
        record_refresh(
            record.id,
            outcome,
            duration_ms=_elapsed_ms(started),
            holes=len(report.holes),
            skipped=report.skipped,
            dropped=report.dropped,
        )
        return POILookup(
            poi=fresh, state=state, refreshed=True, storage_error=storage_error
        )

    def _mark_attempt(self, record: CourseRecord) -> None:
        try:
            self._store.mark_attempt(record.id, _now())
        except StorageError:
            _LOG.warning(
                "course %s: could not record refresh attempt", record.id, exc_info=True
            )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _now() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=1)
def get_poi_service() -> CoursePOIService:
    return CoursePOIService(build_store())


__all__ = [
    "CacheState",
    "CoursePOIService",
    "POILookup",
    "get_poi_service",
]
