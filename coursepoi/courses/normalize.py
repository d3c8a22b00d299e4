"""Classification of provider coordinate records into per-hole course features.

The provider tags every coordinate with an integer ``poi`` code. Each code maps
to exactly one feature category (green, bunker, hazard or tee); the optional
``location`` and ``sideFW`` qualifiers refine where on the hole the point sits.
Everything here is pure: no I/O, no shared state, diagnostics only through the
logger handed in by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import RecordError
from .schemas import (
    BunkerPoint,
    FeaturePoint,
    GreenPoint,
    HazardPoint,
    HolePOI,
    RawCoordinate,
    TeePoint,
)

_LOG = logging.getLogger(__name__)


class PoiCode(IntEnum):
    GREEN = 1
    GREEN_BUNKER = 2
    FAIRWAY_BUNKER = 3
    WATER = 4
    TREES = 5
    MARKER_100 = 6
    MARKER_150 = 7
    MARKER_200 = 8
    DOGLEG = 9
    ROAD = 10
    FRONT_TEE = 11
    BACK_TEE = 12


def _green_location(code: Optional[int]) -> str:
    if code == 1:
        return "front"
    if code == 3:
        return "back"
    return "center"


def _bunker_location(code: Optional[int]) -> str:
    if code == 1:
        return "front"
    if code == 3:
        return "back"
    return "middle"


def _side(code: Optional[int]) -> str:
    if code == 1:
        return "left"
    if code == 3:
        return "right"
    return "center"


def _green(record: RawCoordinate) -> GreenPoint:
    return GreenPoint(
        lat=record.latitude,
        lng=record.longitude,
        location=_green_location(record.location),
    )


def _bunker(kind: str) -> Callable[[RawCoordinate], BunkerPoint]:
    def build(record: RawCoordinate) -> BunkerPoint:
        return BunkerPoint(
            lat=record.latitude,
            lng=record.longitude,
            side=_side(record.side_fw),
            location=_bunker_location(record.location),
            type=kind,
        )

    return build


def _hazard(
    kind: str, distance: Optional[int] = None
) -> Callable[[RawCoordinate], HazardPoint]:
    def build(record: RawCoordinate) -> HazardPoint:
        return HazardPoint(
            lat=record.latitude, lng=record.longitude, type=kind, distance=distance
        )

    return build


def _tee(location: str) -> Callable[[RawCoordinate], TeePoint]:
    def build(record: RawCoordinate) -> TeePoint:
        return TeePoint(lat=record.latitude, lng=record.longitude, location=location)

    return build


CLASSIFIERS: Dict[PoiCode, Callable[[RawCoordinate], FeaturePoint]] = {
    PoiCode.GREEN: _green,
    PoiCode.GREEN_BUNKER: _bunker("green"),
    PoiCode.FAIRWAY_BUNKER: _bunker("fairway"),
    PoiCode.WATER: _hazard("water"),
    PoiCode.TREES: _hazard("trees"),
    PoiCode.MARKER_100: _hazard("distance_marker", 100),
    PoiCode.MARKER_150: _hazard("distance_marker", 150),
    PoiCode.MARKER_200: _hazard("distance_marker", 200),
    PoiCode.DOGLEG: _hazard("dogleg"),
    PoiCode.ROAD: _hazard("road"),
    PoiCode.FRONT_TEE: _tee("front"),
    PoiCode.BACK_TEE: _tee("back"),
}


def classify(record: RawCoordinate) -> Optional[FeaturePoint]:
    """Map a validated record to its feature point, ``None`` for unknown codes."""

    if record.poi is None:
        return None
    try:
        code = PoiCode(record.poi)
    except ValueError:
        return None
    return CLASSIFIERS[code](record)


@dataclass
class _HoleBuilder:
    hole: int
    greens: List[GreenPoint] = field(default_factory=list)
    bunkers: List[BunkerPoint] = field(default_factory=list)
    hazards: List[HazardPoint] = field(default_factory=list)
    tees: List[TeePoint] = field(default_factory=list)

    def add(self, point: FeaturePoint) -> None:
        if isinstance(point, GreenPoint):
            self.greens.append(point)
        elif isinstance(point, BunkerPoint):
            self.bunkers.append(point)
        elif isinstance(point, HazardPoint):
            self.hazards.append(point)
        elif isinstance(point, TeePoint):
            self.tees.append(point)
        else:  # pragma: no cover - exhaustive over FeaturePoint
            raise TypeError(f"unsupported feature point: {type(point).__name__}")

    def build(self) -> HolePOI:
        return HolePOI(
            hole=self.hole,
            greens=self.greens,
            bunkers=self.bunkers,
            hazards=self.hazards,
            tees=self.tees,
        )


@dataclass(frozen=True)
class NormalizeReport:
    course_id: str
    holes: List[HolePOI]
    received: int
    skipped: int
    dropped: int


def normalize_report(
    course_id: str,
    raw_coordinates: Iterable[Any],
    *,
    logger: logging.Logger | None = None,
) -> NormalizeReport:
    """Classify ``raw_coordinates`` and group them by hole, with counters."""

    log = logger or _LOG
    builders: Dict[int, _HoleBuilder] = {}
    received = skipped = dropped = 0

    for raw in raw_coordinates:
        received += 1
        try:
            record = RawCoordinate.parse(raw)
        except RecordError as exc:
            skipped += 1
            log.warning("course %s: skipping coordinate: %s", course_id, exc)
            continue

        point = classify(record)
        if point is None:
            dropped += 1
            continue

        builder = builders.get(record.hole)
        if builder is None:
            builder = builders[record.hole] = _HoleBuilder(hole=record.hole)
        builder.add(point)

    holes = [builders[number].build() for number in sorted(builders)]
    log.info(
        "course %s: normalized %d holes from %d records (%d skipped, %d dropped)",
        course_id,
        len(holes),
        received,
        skipped,
        dropped,
    )
    return NormalizeReport(
        course_id=course_id,
        holes=holes,
        received=received,
        skipped=skipped,
        dropped=dropped,
    )


def normalize(
    course_id: str,
    raw_coordinates: Iterable[Any],
    *,
    logger: logging.Logger | None = None,
) -> List[HolePOI]:
    """Return the hole-indexed POI for ``raw_coordinates``, ordered by hole.

    Invalid records are skipped and unknown codes dropped; an empty list is a
    valid result and it is up to the caller to decide what that means.
    """

    return normalize_report(course_id, raw_coordinates, logger=logger).holes


__all__ = [
    "CLASSIFIERS",
    "NormalizeReport",
    "PoiCode",
    "classify",
    "normalize",
    "normalize_report",
]
