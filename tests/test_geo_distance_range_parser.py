"""Tests for the `geo_distance_range` clause parser."""

from __future__ import annotations

import pytest

from src.query.builders import GeoDistanceRangeQueryBuilder
from src.query.errors import (
    DeprecatedFieldError,
    IncompleteCompositeError,
    MalformedValueError,
    MissingRequiredFieldError,
    UnrecognizedFieldError,
)
from src.query.geo import DistanceUnit, GeoDistance, GeoPoint, decode_geohash
from src.query.parser import parse_query, parse_query_with_deprecations
from src.query.values import NumberBound, TextBound

GEOHASH = "u4pruydqqvj"


def _range(**body: object) -> dict[str, object]:
    return {"geo_distance_range": body}


def _parse(body: dict[str, object], **kwargs) -> GeoDistanceRangeQueryBuilder:
    builder = parse_query({"geo_distance_range": body}, **kwargs)
    assert isinstance(builder, GeoDistanceRangeQueryBuilder)
    return builder


def test_defaults() -> None:
    builder = _parse({"pin": [-70.0, 40.0]})

    assert builder.field_name == "pin"
    assert builder.point == GeoPoint(lat=40.0, lon=-70.0)
    assert builder.from_value is None
    assert builder.to_value is None
    assert builder.include_lower is True
    assert builder.include_upper is True
    assert builder.unit is DistanceUnit.meters
    assert builder.distance_type is GeoDistance.sloppy_arc
    assert builder.optimize_bbox == "memory"
    assert builder.coerce is False
    assert builder.ignore_malformed is False
    assert builder.boost == 1.0
    assert builder.query_name is None


@pytest.mark.parametrize(
    "body",
    [
        {"pin.location": [-70.0, 40.0]},
        {"pin.location": [-70.0, 40.0, 12.0]},
        {"pin.location": {"lat": 40.0, "lon": -70.0}},
        {"pin.location": "40.0,-70.0"},
        {"pin.location.lat": 40.0, "pin.location.lon": -70.0},
        {"pin.location.lon": -70.0, "pin.location.lat": 40.0},
    ],
)
def test_every_point_shape_builds_the_same_point(body: dict[str, object]) -> None:
    builder = _parse(body)
    assert builder.field_name == "pin.location"
    assert builder.point == GeoPoint(lat=40.0, lon=-70.0)


def test_geohash_shapes() -> None:
    expected = decode_geohash(GEOHASH)
    assert _parse({"pin": GEOHASH}).point == expected
    assert _parse({"pin": {"geohash": GEOHASH}}).point == expected

    builder = _parse({"pin.geohash": GEOHASH})
    assert builder.field_name == "pin"
    assert builder.point == expected


def test_latitude_without_longitude_is_incomplete() -> None:
    with pytest.raises(IncompleteCompositeError) as exc_info:
        _parse({"pin.lat": 40.0, "from": "1km"})
    assert exc_info.value.clause == "geo_distance_range"
    assert exc_info.value.field == "pin"


def test_later_point_shape_wins() -> None:
    builder = _parse({"pin.lat": 1.0, "pin.lon": 2.0, "pin": [-70.0, 40.0]})
    assert builder.point == GeoPoint(lat=40.0, lon=-70.0)

    builder = _parse({"pin": [-70.0, 40.0], "pin.geohash": GEOHASH})
    assert builder.point == decode_geohash(GEOHASH)


def test_missing_point_is_a_build_error() -> None:
    with pytest.raises(MissingRequiredFieldError) as exc_info:
        _parse({"from": "1km", "to": "2km"})
    assert exc_info.value.clause == "geo_distance_range"


def test_explicit_bounds_and_flags() -> None:
    builder = _parse(
        {
            "pin": [0.0, 0.0],
            "from": "200km",
            "to": 400,
            "include_lower": False,
            "include_upper": False,
            "unit": "km",
        }
    )

    assert builder.from_value == TextBound(value="200km")
    assert builder.to_value == NumberBound(value=400)
    assert builder.include_lower is False
    assert builder.include_upper is False
    assert builder.from_meters() == pytest.approx(200_000)
    assert builder.to_meters() == pytest.approx(400_000)


@pytest.mark.parametrize(
    ("field", "lower", "inclusive"),
    [("gt", True, False), ("gte", True, True), ("ge", True, True),
     ("lt", False, False), ("lte", False, True), ("le", False, True)],
)
def test_shorthand_sets_bound_and_inclusivity(field: str, lower: bool, inclusive: bool) -> None:
    builder = _parse({"pin": [0.0, 0.0], field: "5mi"})

    bound = builder.from_value if lower else builder.to_value
    other = builder.to_value if lower else builder.from_value
    assert bound == TextBound(value="5mi")
    assert other is None
    assert (builder.include_lower if lower else builder.include_upper) is inclusive


def test_later_shorthand_overwrites_earlier_one() -> None:
    builder = parse_query(
        '{"geo_distance_range": {"pin": [0, 0], "gte": 1, "gt": 2, "lt": 9, "lte": 8}}'
    )

    assert builder.from_value == NumberBound(value=2)
    assert builder.include_lower is False
    assert builder.to_value == NumberBound(value=8)
    assert builder.include_upper is True


def test_shorthand_and_explicit_bound_follow_token_order() -> None:
    builder = parse_query(
        '{"geo_distance_range": {"pin": [0, 0], "from": 5, "include_lower": false, "gte": 5}}'
    )
    assert builder.include_lower is True

    builder = parse_query(
        '{"geo_distance_range": {"pin": [0, 0], "gte": 5, "from": 5, "include_lower": false}}'
    )
    assert builder.from_value == NumberBound(value=5)
    assert builder.include_lower is False


def test_null_bound_is_absent_but_sets_inclusivity() -> None:
    builder = _parse({"pin": [0.0, 0.0], "from": "1km", "gt": None, "to": None})

    assert builder.from_value == TextBound(value="1km")
    assert builder.include_lower is False
    assert builder.to_value is None


def test_numeric_looking_string_bound_stays_text() -> None:
    builder = _parse({"pin": [0.0, 0.0], "from": "5", "unit": "km"})
    assert builder.from_value == TextBound(value="5")
    assert builder.from_meters() == pytest.approx(5000)


def test_boolean_bound_cannot_resolve_to_meters() -> None:
    builder = _parse({"pin": [0.0, 0.0], "from": True})
    with pytest.raises(MalformedValueError):
        builder.from_meters()


def test_enumerated_settings() -> None:
    builder = _parse(
        {
            "pin": [0.0, 0.0],
            "unit": "nmi",
            "distance_type": "ARC",
            "optimize_bbox": "indexed",
            "boost": 2,
            "_name": "nearby",
        }
    )

    assert builder.unit is DistanceUnit.nautical_miles
    assert builder.distance_type is GeoDistance.arc
    assert builder.optimize_bbox == "indexed"
    assert builder.boost == 2.0
    assert builder.query_name == "nearby"


def test_null_optimize_bbox_keeps_default() -> None:
    assert _parse({"pin": [0.0, 0.0], "optimize_bbox": None}).optimize_bbox == "memory"


@pytest.mark.parametrize(
    "extra",
    [
        {"unit": "furlongs"},
        {"distance_type": "manhattan"},
        {"optimize_bbox": "fast"},
        {"include_lower": "maybe"},
        {"boost": "high"},
        {"pin2": "not a point!"},
    ],
)
def test_invalid_values_are_malformed(extra: dict[str, object]) -> None:
    with pytest.raises(MalformedValueError) as exc_info:
        _parse({"pin": [0.0, 0.0], **extra})
    assert exc_info.value.clause == "geo_distance_range"


@pytest.mark.parametrize("extra", [{"not_a_real_field": 1}, {"not_a_real_field": True}])
def test_unknown_scalar_field_is_rejected(extra: dict[str, object]) -> None:
    with pytest.raises(UnrecognizedFieldError) as exc_info:
        _parse({"pin": [0.0, 0.0], **extra})
    assert exc_info.value.clause == "geo_distance_range"
    assert exc_info.value.field == "not_a_real_field"


def test_out_of_range_point_is_rejected() -> None:
    with pytest.raises(MalformedValueError, match="illegal point"):
        _parse({"pin": [0.0, 100.0]})


def test_ignore_malformed_keeps_out_of_range_point() -> None:
    builder = _parse({"pin": [0.0, 100.0], "ignore_malformed": True})
    assert builder.point == GeoPoint(lat=100.0, lon=0.0)


def test_coerce_normalizes_point() -> None:
    builder = _parse({"pin": [0.0, 100.0], "coerce": True})
    assert builder.point.lat == pytest.approx(80.0)
    assert builder.point.lon == pytest.approx(180.0)


def test_normalize_is_a_deprecated_coerce() -> None:
    result = parse_query_with_deprecations(_range(pin=[0.0, 100.0], normalize=True))

    assert result.builder == _parse({"pin": [0.0, 100.0], "coerce": True})
    assert [n.used for n in result.deprecations] == ["normalize"]


def test_cache_settings_are_skipped_with_a_notice() -> None:
    result = parse_query_with_deprecations(
        _range(pin=[0.0, 0.0], _cache=True, _cache_key={"any": ["thing"]})
    )

    assert result.builder == _parse({"pin": [0.0, 0.0]})
    assert [n.used for n in result.deprecations] == ["_cache", "_cache_key"]


def test_strict_matching_rejects_cache_setting() -> None:
    with pytest.raises(DeprecatedFieldError) as exc_info:
        _parse({"pin": [0.0, 0.0], "_cache": True}, strict=True)
    assert exc_info.value.field == "_cache"


def test_camel_case_spellings() -> None:
    builder = parse_query(
        {
            "geoDistanceRange": {
                "pin": [0.0, 0.0],
                "includeLower": False,
                "distanceType": "plane",
                "optimizeBbox": "none",
                "ignoreMalformed": True,
            }
        }
    )

    assert builder.include_lower is False
    assert builder.distance_type is GeoDistance.plane
    assert builder.optimize_bbox == "none"
    assert builder.ignore_malformed is True


def test_camel_case_fields_can_be_disabled() -> None:
    with pytest.raises(UnrecognizedFieldError) as exc_info:
        _parse({"pin": [0.0, 0.0], "includeLower": False}, allow_camel_case=False)
    assert exc_info.value.field == "includeLower"


def test_round_trip_through_query_dict() -> None:
    builder = _parse(
        {
            "pin.location": {"lat": 40.0, "lon": -70.0},
            "gte": "200km",
            "lt": 400,
            "unit": "mi",
            "distance_type": "plane",
            "optimize_bbox": "indexed",
            "boost": 0.5,
            "_name": "ring",
        }
    )

    assert parse_query(builder.to_query_dict()) == builder
