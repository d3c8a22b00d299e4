"""Course POI domain models, normalization and caching services."""

from .errors import CourseNotFoundError, EmptyResultError, RecordError, StorageError
from .normalize import PoiCode, classify, normalize, normalize_report
from .schemas import (
    BunkerPoint,
    CoursePOI,
    CourseRecord,
    GreenPoint,
    HazardPoint,
    HolePOI,
    RawCoordinate,
    TeePoint,
)
from .service import CacheState, CoursePOIService, POILookup, get_poi_service
from .store import CourseStore, FileCourseStore, SupabaseCourseStore, build_store

__all__ = [
    "BunkerPoint",
    "CacheState",
    "CourseNotFoundError",
    "CoursePOI",
    "CoursePOIService",
    "CourseRecord",
    "CourseStore",
    "EmptyResultError",
    "FileCourseStore",
    "GreenPoint",
    "HazardPoint",
    "HolePOI",
    "POILookup",
    "PoiCode",
    "RawCoordinate",
    "RecordError",
    "StorageError",
    "SupabaseCourseStore",
    "TeePoint",
    "build_store",
    "classify",
    "get_poi_service",
    "normalize",
    "normalize_report",
]
