"""Telemetry helpers for course POI refresh instrumentation."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Mapping, MutableMapping, Optional

from coursepoi.metrics import POI_RECORDS_SKIPPED, POI_REFRESHES

PoiTelemetryEmitter = Callable[[str, Mapping[str, object]], None]

_emitter: Optional[PoiTelemetryEmitter] = None
_logger = logging.getLogger("coursepoi.telemetry")


def set_poi_telemetry_emitter(candidate: PoiTelemetryEmitter | None) -> None:
    """Register a telemetry emitter used for POI refresh instrumentation."""

    global _emitter
    _emitter = candidate if callable(candidate) else None


def _safe_emit(event: str, payload: MutableMapping[str, object]) -> None:
    if not _emitter:
        _logger.debug("telemetry emitter not configured for event %s", event)
        return
    try:
        _emitter(event, dict(payload))
    except Exception:  # pragma: no cover - defensive logging only
        _logger.exception("failed to emit telemetry event %s", event)


def record_refresh(
    course_id: str,
    outcome: str,
    *,
    duration_ms: float,
    holes: int = 0,
    skipped: int = 0,
    dropped: int = 0,
    error: str | None = None,
) -> None:
    POI_REFRESHES.labels(outcome=outcome).inc()
    if skipped:
        POI_RECORDS_SKIPPED.inc(skipped)
    payload: Dict[str, object] = {
        "courseId": course_id,
        "outcome": outcome,
        "durationMs": int(max(0, round(duration_ms))),
        "holes": holes,
        "skipped": skipped,
        "dropped": dropped,
        "ts": _now_ms(),
    }
    if error:
        payload["error"] = error
    _safe_emit("poi.refresh", payload)


def _now_ms() -> int:
    return int(time.time() * 1000)


__all__ = ["PoiTelemetryEmitter", "record_refresh", "set_poi_telemetry_emitter"]
