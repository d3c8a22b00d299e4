from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from coursepoi.config import coerce_boolish
from coursepoi.courses import (
    CourseNotFoundError,
    CoursePOIService,
    EmptyResultError,
    HolePOI,
    StorageError,
    get_poi_service,
)
from coursepoi.providers import ProviderError

router = APIRouter(tags=["poi"])

_LOG = logging.getLogger(__name__)


class CoursePOIOut(BaseModel):
    course_id: str
    poi: List[HolePOI]
    updated_at: Optional[datetime] = None
    has_poi_data: bool
    poi_feature_count: int
    data_refreshed: bool
    stale: bool
    error: Optional[str] = None


def _wants_refresh(refresh: str | None) -> bool:
    return coerce_boolish(refresh) is True


@router.get(
    "/courses/{course_id}/poi",
    response_model=CoursePOIOut,
    response_model_exclude_none=True,
)
async def get_course_poi(
    course_id: str,
    refresh: str | None = Query(None),
    service: CoursePOIService = Depends(get_poi_service),
) -> CoursePOIOut:
    force = _wants_refresh(refresh)
    try:
        result = await run_in_threadpool(
            lambda: service.lookup(course_id, force_refresh=force)
        )
    except CourseNotFoundError as exc:
        raise HTTPException(status_code=404, detail="course_not_found") from exc
    except EmptyResultError as exc:
        # No usable data anywhere; callers degrade to "no POI available".
        return CoursePOIOut(
            course_id=course_id,
            poi=[],
            has_poi_data=False,
            poi_feature_count=0,
            data_refreshed=False,
            stale=False,
            error=str(exc),
        )
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StorageError as exc:
        _LOG.error("course %s: store unavailable: %s", course_id, exc)
        raise HTTPException(status_code=503, detail="course_store_unavailable") from exc

    poi = result.poi
    return CoursePOIOut(
        course_id=poi.course_id,
        poi=poi.holes,
        updated_at=poi.last_refreshed,
        has_poi_data=poi.has_poi_data,
        poi_feature_count=poi.feature_count,
        data_refreshed=result.refreshed,
        stale=result.stale,
        error=result.error,
    )


@router.get(
    "/courses/{course_id}/poi/holes/{hole}",
    response_model=HolePOI,
    response_model_exclude_none=True,
)
async def get_hole_poi(
    course_id: str,
    hole: int = Path(..., ge=1),
    service: CoursePOIService = Depends(get_poi_service),
) -> HolePOI:
    try:
        result = await run_in_threadpool(lambda: service.lookup(course_id))
    except CourseNotFoundError as exc:
        raise HTTPException(status_code=404, detail="course_not_found") from exc
    except (EmptyResultError, ProviderError):
        return HolePOI(hole=hole)
    except StorageError as exc:
        raise HTTPException(status_code=503, detail="course_store_unavailable") from exc
    return result.poi.hole(hole)


__all__ = ["router"]
