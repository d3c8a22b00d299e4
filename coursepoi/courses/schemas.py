from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import RecordError

GreenLocation = Literal["front", "center", "back"]
BunkerLocation = Literal["front", "middle", "back"]
Side = Literal["left", "center", "right"]
BunkerType = Literal["green", "fairway"]
HazardType = Literal["water", "trees", "distance_marker", "dogleg", "road"]
TeeLocation = Literal["front", "back"]

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class RawCoordinate(BaseModel):
    """A validated coordinate record as emitted by the provider."""

    hole: int
    latitude: float
    longitude: float
    poi: Optional[int] = None
    location: Optional[int] = None
    side_fw: Optional[int] = Field(default=None, alias="sideFW")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def parse(cls, raw: Any) -> "RawCoordinate":
        """Validate a provider dict, raising ``RecordError`` when unusable."""

        if not isinstance(raw, Mapping):
            raise RecordError(f"coordinate is not an object: {raw!r}")
        for key in ("hole", "latitude", "longitude"):
            if _is_missing(raw.get(key)):
                raise RecordError(f"coordinate missing {key}")
        hole = _parse_hole(raw["hole"])
        return cls(
            hole=hole,
            latitude=_parse_float(raw["latitude"], "latitude"),
            longitude=_parse_float(raw["longitude"], "longitude"),
            poi=_strict_int(raw.get("poi")),
            location=_strict_int(raw.get("location")),
            side_fw=_strict_int(raw.get("sideFW")),
        )


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _parse_hole(value: Any) -> int:
    if isinstance(value, bool):
        raise RecordError(f"invalid hole number: {value!r}")
    if isinstance(value, str):
        # Leading digits decide the hole, so "5.0" and "5th" both mean 5.
        match = _LEADING_INT_RE.match(value)
        if match is None:
            raise RecordError(f"invalid hole number: {value!r}")
        number = int(match.group(1))
    else:
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise RecordError(f"invalid hole number: {value!r}") from exc
    if number < 1:
        raise RecordError(f"invalid hole number: {value!r}")
    return number


def _parse_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise RecordError(f"invalid {field}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise RecordError(f"invalid {field}: {value!r}") from exc
    if not math.isfinite(number):
        raise RecordError(f"invalid {field}: {value!r}")
    return number


def _strict_int(value: Any) -> Optional[int]:
    # Qualifier codes compare by exact numeric identity; strings never match.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class _Point(BaseModel):
    lat: float
    lng: float

    model_config = ConfigDict(frozen=True)


class GreenPoint(_Point):
    location: GreenLocation = "center"


class BunkerPoint(_Point):
    side: Side = "center"
    location: BunkerLocation = "middle"
    type: BunkerType


class HazardPoint(_Point):
    type: HazardType
    distance: Optional[int] = None


class TeePoint(_Point):
    location: TeeLocation


FeaturePoint = Union[GreenPoint, BunkerPoint, HazardPoint, TeePoint]


class HolePOI(BaseModel):
    """Features for a single hole; every list defaults to empty."""

    hole: int
    greens: List[GreenPoint] = Field(default_factory=list)
    bunkers: List[BunkerPoint] = Field(default_factory=list)
    hazards: List[HazardPoint] = Field(default_factory=list)
    tees: List[TeePoint] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def feature_count(self) -> int:
        return (
            len(self.greens) + len(self.bunkers) + len(self.hazards) + len(self.tees)
        )


class CoursePOI(BaseModel):
    """Hole-indexed POI for one course, ordered by hole number."""

    course_id: str
    holes: List[HolePOI] = Field(default_factory=list)
    last_refreshed: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def has_poi_data(self) -> bool:
        return self.feature_count > 0

    @property
    def feature_count(self) -> int:
        return sum(hole.feature_count for hole in self.holes)

    def hole(self, number: int) -> HolePOI:
        """Return the POI for ``number``, an empty record when absent."""

        for entry in self.holes:
            if entry.hole == number:
                return entry
        return HolePOI(hole=number)


class CourseRecord(BaseModel):
    """Persisted course row carrying the cached POI payload."""

    id: str
    name: Optional[str] = None
    api_course_id: Optional[str] = None
    poi: Optional[List[HolePOI]] = None
    updated_at: Optional[datetime] = None
    poi_attempted_at: Optional[datetime] = None

    @property
    def has_poi(self) -> bool:
        return bool(self.poi)

    def to_course_poi(self) -> CoursePOI:
        holes = sorted(self.poi or [], key=lambda entry: entry.hole)
        return CoursePOI(
            course_id=self.id, holes=holes, last_refreshed=self.updated_at
        )


def dump_holes(holes: List[HolePOI]) -> List[dict[str, Any]]:
    """Serialize holes for persistence, omitting unset optional fields."""

    return [hole.model_dump(mode="json", exclude_none=True) for hole in holes]


__all__ = [
    "BunkerPoint",
    "CoursePOI",
    "CourseRecord",
    "FeaturePoint",
    "GreenPoint",
    "HazardPoint",
    "HolePOI",
    "RawCoordinate",
    "TeePoint",
    "dump_holes",
]
