"""Parser for the `geo_distance_range` clause.

    {
        "geo_distance_range": {
            "pin.location": [-70.0, 40.0],
            "gte": "200km",
            "lt": "400km"
        }
    }

The point may equally be given as `{"lat": 40, "lon": -70}`, `"40,-70"`, a geohash, or the
suffixed pair `"pin.location.lat": 40, "pin.location.lon": -70`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from src.query.builders import (
    GEO_DISTANCE_RANGE_PROTOTYPE,
    GeoDistanceRangeQueryBuilder,
    QueryBuilder,
    build,
)
from src.query.fields import ParseField
from src.query.geo import (
    GEOHASH_SUFFIX,
    LAT_SUFFIX,
    DistanceUnit,
    GeoDistance,
    PointAccumulator,
    parse_geo_point,
    strip_point_suffix,
)
from src.query.parsers.base import BOOST_FIELD, NAME_FIELD, QueryParser
from src.query.values import coerce_bound_value
from src.xcontent.tokens import Token

if TYPE_CHECKING:
    from src.query.context import QueryParseContext

FROM_FIELD = ParseField("from")
TO_FIELD = ParseField("to")
INCLUDE_LOWER_FIELD = ParseField("include_lower")
INCLUDE_UPPER_FIELD = ParseField("include_upper")
GT_FIELD = ParseField("gt")
GTE_FIELD = ParseField("gte", ("ge",))
LT_FIELD = ParseField("lt")
LTE_FIELD = ParseField("lte", ("le",))
UNIT_FIELD = ParseField("unit")
DISTANCE_TYPE_FIELD = ParseField("distance_type")
OPTIMIZE_BBOX_FIELD = ParseField("optimize_bbox")
COERCE_FIELD = ParseField("coerce", ("normalize",))
IGNORE_MALFORMED_FIELD = ParseField("ignore_malformed")

# Shorthand bounds: field -> (writes the lower bound?, inclusive?)
_SHORTHAND_BOUNDS: tuple[tuple[ParseField, bool, bool], ...] = (
    (GT_FIELD, True, False),
    (GTE_FIELD, True, True),
    (LT_FIELD, False, False),
    (LTE_FIELD, False, True),
)


class GeoDistanceRangeQueryParser(QueryParser):
    """Parses `geo_distance_range` / `geoDistanceRange`."""

    NAME: ClassVar[str] = GeoDistanceRangeQueryBuilder.NAME

    def prototype(self) -> GeoDistanceRangeQueryBuilder:
        return GEO_DISTANCE_RANGE_PROTOTYPE

    def do_from_x_content(self, context: QueryParseContext) -> QueryBuilder:
        cursor = context.cursor
        matcher = context.matcher

        boost = None
        query_name = None
        point = PointAccumulator()
        v_from = None
        v_to = None
        include_lower = None
        include_upper = None
        unit = None
        distance_type = None
        optimize_bbox = None
        coerce = None
        ignore_malformed = None

        current_field_name = None
        while (token := context.next_token(self.NAME)) is not Token.end_object:
            if token is Token.field_name:
                current_field_name = cursor.current_name()
            elif context.is_deprecated_setting(current_field_name):
                cursor.skip_children()
            elif token in {Token.start_array, Token.start_object}:
                # {"field": [lon, lat]} or {"field": {"lat": .., "lon": ..}}
                point.set_point(current_field_name, parse_geo_point(cursor))
            elif matcher.match(current_field_name, FROM_FIELD):
                v_from = coerce_bound_value(cursor) or v_from
            elif matcher.match(current_field_name, TO_FIELD):
                v_to = coerce_bound_value(cursor) or v_to
            elif matcher.match(current_field_name, INCLUDE_LOWER_FIELD):
                include_lower = cursor.boolean_value()
            elif matcher.match(current_field_name, INCLUDE_UPPER_FIELD):
                include_upper = cursor.boolean_value()
            elif shorthand := self._shorthand(context, current_field_name):
                lower, inclusive = shorthand
                bound = coerce_bound_value(cursor)
                if lower:
                    v_from = bound or v_from
                    include_lower = inclusive
                else:
                    v_to = bound or v_to
                    include_upper = inclusive
            elif matcher.match(current_field_name, UNIT_FIELD):
                unit = DistanceUnit.from_string(cursor.text())
            elif matcher.match(current_field_name, DISTANCE_TYPE_FIELD):
                distance_type = GeoDistance.from_string(cursor.text())
            elif matcher.match(current_field_name, NAME_FIELD):
                query_name = cursor.text()
            elif matcher.match(current_field_name, BOOST_FIELD):
                boost = cursor.float_value()
            elif matcher.match(current_field_name, OPTIMIZE_BBOX_FIELD):
                optimize_bbox = cursor.text_or_null() or optimize_bbox
            elif matcher.match(current_field_name, COERCE_FIELD):
                coerce = cursor.boolean_value()
            elif matcher.match(current_field_name, IGNORE_MALFORMED_FIELD):
                ignore_malformed = cursor.boolean_value()
            elif suffixed := strip_point_suffix(current_field_name or ""):
                base_field, suffix = suffixed
                if suffix == GEOHASH_SUFFIX:
                    point.set_geohash(base_field, cursor.text())
                elif suffix == LAT_SUFFIX:
                    point.set_lat(base_field, cursor.float_value())
                else:
                    point.set_lon(base_field, cursor.float_value())
            elif token is Token.value_string:
                # {"field": "lat,lon"} or {"field": "<geohash>"}
                point.set_point(current_field_name, parse_geo_point(cursor))
            else:
                raise self.unsupported(current_field_name)

        return build(
            GeoDistanceRangeQueryBuilder,
            field_name=point.field_name,
            point=point.resolve(self.NAME),
            from_value=v_from,
            to_value=v_to,
            include_lower=include_lower,
            include_upper=include_upper,
            unit=unit,
            distance_type=distance_type,
            optimize_bbox=optimize_bbox,
            coerce=coerce,
            ignore_malformed=ignore_malformed,
            boost=boost,
            query_name=query_name,
        )

    @staticmethod
    def _shorthand(context: QueryParseContext, field_name: str | None) -> tuple[bool, bool] | None:
        for field, lower, inclusive in _SHORTHAND_BOUNDS:
            if context.matcher.match(field_name, field):
                return lower, inclusive
        return None
