from __future__ import annotations

import logging
import time
from typing import Any, List

import httpx

from coursepoi.config import Settings, get_settings

from .errors import ProviderError, ProviderNotConfiguredError, ProviderShapeError

_LOG = logging.getLogger(__name__)


def _http_client_factory(**kwargs: Any) -> httpx.Client:
    timeout = kwargs.pop("timeout", 15.0)
    return httpx.Client(timeout=timeout, follow_redirects=True, **kwargs)


def fetch_coordinates(
    provider_course_id: str, *, settings: Settings | None = None
) -> List[Any]:
    """Fetch the raw coordinate records for a provider course id."""

    settings = settings or get_settings()
    if not settings.golf_api_key:
        raise ProviderNotConfiguredError("golf api key not configured")
    if not provider_course_id:
        raise ProviderNotConfiguredError("course has no provider id")

    url = f"{settings.golf_api_base_url}/coordinates/{provider_course_id}"
    headers = {
        "Authorization": f"Bearer {settings.golf_api_key}",
        "Content-Type": "application/json",
    }
    started = time.perf_counter()
    try:
        with _http_client_factory(timeout=settings.golf_api_timeout_s) as client:
            response = client.get(url, headers=headers)
    except httpx.RequestError as exc:
        raise ProviderError(f"golfapi coordinates request failed: {exc}") from exc

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    _LOG.debug(
        "golfapi coordinates %s -> %s in %.1fms",
        provider_course_id,
        response.status_code,
        elapsed_ms,
    )

    if response.status_code in (401, 403):
        _LOG.error(
            "golfapi authentication failed (%s), check GOLF_API_KEY",
            response.status_code,
        )
    if not response.is_success:
        raise ProviderError(
            f"golfapi coordinates failed: {response.status_code}",
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderShapeError("golfapi coordinates body is not json") from exc
    return parse_envelope(payload)


def parse_envelope(payload: Any) -> List[Any]:
    """Return the ``coordinates`` list from a provider response body."""

    if not isinstance(payload, dict):
        raise ProviderShapeError("golfapi coordinates envelope is not an object")
    coordinates = payload.get("coordinates")
    if not isinstance(coordinates, list):
        _LOG.warning(
            "golfapi response missing coordinates, keys=%s", sorted(payload.keys())
        )
        raise ProviderShapeError("golfapi coordinates missing data")
    _LOG.info("received %d coordinate points from golfapi", len(coordinates))
    return list(coordinates)
