from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from coursepoi.courses.errors import RecordError
from coursepoi.courses.schemas import (
    CoursePOI,
    CourseRecord,
    GreenPoint,
    HazardPoint,
    HolePOI,
    RawCoordinate,
    dump_holes,
)


def test_raw_coordinate_parse_reads_qualifiers():
    record = RawCoordinate.parse(
        {
            "hole": "4",
            "latitude": "51.5",
            "longitude": -0.12,
            "poi": 2,
            "location": 3,
            "sideFW": 1,
        }
    )
    assert record.hole == 4
    assert record.latitude == pytest.approx(51.5)
    assert record.poi == 2
    assert record.location == 3
    assert record.side_fw == 1


def test_raw_coordinate_parse_ignores_non_numeric_qualifiers():
    record = RawCoordinate.parse(
        {"hole": 1, "latitude": 1, "longitude": 1, "poi": "1", "location": "1"}
    )
    assert record.poi is None
    assert record.location is None


@pytest.mark.parametrize(
    "payload, message",
    [
        ([1, 2, 3], "not an object"),
        ({"latitude": 1, "longitude": 1}, "missing hole"),
        ({"hole": 1, "longitude": 1}, "missing latitude"),
        ({"hole": 1, "latitude": 1, "longitude": "  "}, "missing longitude"),
        ({"hole": "a1", "latitude": 1, "longitude": 1}, "invalid hole"),
        ({"hole": "-3", "latitude": 1, "longitude": 1}, "invalid hole"),
        ({"hole": -2, "latitude": 1, "longitude": 1}, "invalid hole"),
        ({"hole": 1, "latitude": float("inf"), "longitude": 1}, "invalid latitude"),
    ],
)
def test_raw_coordinate_parse_errors(payload, message):
    with pytest.raises(RecordError, match=message):
        RawCoordinate.parse(payload)


def test_feature_points_are_immutable():
    point = GreenPoint(lat=1.0, lng=2.0, location="front")
    with pytest.raises(ValidationError):
        point.lat = 3.0

    hole = HolePOI(hole=1, greens=[point])
    with pytest.raises(ValidationError):
        hole.hole = 2


def test_hole_poi_defaults_to_empty_lists():
    hole = HolePOI(hole=3)
    assert hole.greens == []
    assert hole.bunkers == []
    assert hole.hazards == []
    assert hole.tees == []
    assert hole.feature_count == 0


def test_course_poi_hole_lookup_fills_absent_holes():
    green = GreenPoint(lat=1.0, lng=1.0)
    poi = CoursePOI(course_id="c", holes=[HolePOI(hole=1, greens=[green])])

    assert poi.hole(1).greens == [green]
    missing = poi.hole(7)
    assert missing.hole == 7
    assert missing.feature_count == 0
    assert poi.has_poi_data is True
    assert poi.feature_count == 1


def test_course_poi_without_features_has_no_data():
    poi = CoursePOI(course_id="c", holes=[HolePOI(hole=1)])
    assert poi.has_poi_data is False


def test_dump_holes_omits_unset_distance():
    holes = [
        HolePOI(
            hole=1,
            hazards=[
                HazardPoint(lat=1.0, lng=1.0, type="water"),
                HazardPoint(lat=1.0, lng=1.0, type="distance_marker", distance=150),
            ],
        )
    ]
    dumped = dump_holes(holes)
    assert dumped[0]["hazards"][0] == {"lat": 1.0, "lng": 1.0, "type": "water"}
    assert dumped[0]["hazards"][1]["distance"] == 150


def test_course_record_to_course_poi_orders_holes():
    refreshed = datetime(2026, 1, 1, tzinfo=timezone.utc)
    record = CourseRecord(
        id="c",
        poi=[{"hole": 9}, {"hole": 2, "greens": [{"lat": 1, "lng": 2}]}],
        updated_at=refreshed,
    )
    poi = record.to_course_poi()
    assert [hole.hole for hole in poi.holes] == [2, 9]
    assert poi.last_refreshed == refreshed
    assert poi.holes[0].greens[0].location == "center"


@pytest.mark.parametrize(
    "poi, expected", [(None, False), ([], False), ([{"hole": 1}], True)]
)
def test_course_record_has_poi(poi, expected):
    assert CourseRecord(id="c", poi=poi).has_poi is expected


@pytest.mark.parametrize(
    "value, expected",
    [("5", 5), ("5.0", 5), (" 12th", 12), ("5abc", 5), (5.9, 5), (7, 7)],
)
def test_raw_coordinate_hole_uses_leading_integer(value, expected):
    record = RawCoordinate.parse({"hole": value, "latitude": 1, "longitude": 1})
    assert record.hole == expected
