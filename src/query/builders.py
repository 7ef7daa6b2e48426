"""Immutable query builders (Pydantic models).

A builder is the validated output of one clause parser and the input of the downstream query
compiler. Builders are frozen; each kind has a module-level prototype used as a capability marker
and default-value source, never mutated after import.
"""

from __future__ import annotations

from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from src.query.errors import MalformedValueError, MissingRequiredFieldError, QueryParsingError
from src.query.geo import (
    DistanceUnit,
    GeoDistance,
    GeoPoint,
    OptimizeBbox,
    is_valid_point,
    normalize_point,
    parse_distance,
)
from src.query.values import BooleanBound, BoundValue, NumberBound, TextBound

DEFAULT_BOOST = 1.0

_B = TypeVar("_B", bound="QueryBuilder")


class QueryBuilder(BaseModel):
    """Base for every clause builder: boost, optional query name, DSL serialization."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    NAME: ClassVar[str] = ""

    boost: float = DEFAULT_BOOST
    query_name: str | None = None

    def to_query_dict(self) -> dict[str, Any]:
        """Serialize back into the `{NAME: {...}}` shape the matching parser reads."""

        body = self._body()
        if self.boost != DEFAULT_BOOST:
            body["boost"] = self.boost
        if self.query_name is not None:
            body["_name"] = self.query_name
        return {self.NAME: body}

    def _body(self) -> dict[str, Any]:
        return {}


class EmptyQueryBuilder(QueryBuilder):
    """Placeholder for an empty `{}` query object."""

    NAME: ClassVar[str] = "empty"

    def to_query_dict(self) -> dict[str, Any]:
        return {}


class MatchAllQueryBuilder(QueryBuilder):
    """Matches every document."""

    NAME: ClassVar[str] = "match_all"


class InnerHits(BaseModel):
    """Options for returning the matching parent documents alongside the hits."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str | None = None
    from_: int | None = Field(default=None, alias="from")
    size: int | None = None
    explain: bool | None = None
    version: bool | None = None
    track_scores: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class HasParentQueryBuilder(QueryBuilder):
    """Relationship-join clause: children whose parent of `parent_type` matches `query`."""

    NAME: ClassVar[str] = "has_parent"

    parent_type: str
    query: QueryBuilder
    score: bool = False
    inner_hits: InnerHits | None = None

    def _body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "query": self.query.to_query_dict(),
            "parent_type": self.parent_type,
            "score": self.score,
        }
        if self.inner_hits is not None:
            body["inner_hits"] = self.inner_hits.to_dict()
        return body


def _bound_raw(bound: TextBound | NumberBound | BooleanBound | None) -> Any:
    return None if bound is None else bound.value


class GeoDistanceRangeQueryBuilder(QueryBuilder):
    """Geographic range clause: documents whose point lies in a distance band around `point`."""

    NAME: ClassVar[str] = "geo_distance_range"

    field_name: str
    point: GeoPoint
    from_value: BoundValue | None = None
    to_value: BoundValue | None = None
    include_lower: bool = True
    include_upper: bool = True
    unit: DistanceUnit = DistanceUnit.meters
    distance_type: GeoDistance = GeoDistance.sloppy_arc
    optimize_bbox: OptimizeBbox = "memory"
    coerce: bool = False
    ignore_malformed: bool = False

    @model_validator(mode="before")
    @classmethod
    def _coerce_point(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("coerce") and isinstance(data.get("point"), GeoPoint):
            data = {**data, "point": normalize_point(data["point"])}
        return data

    @model_validator(mode="after")
    def _validate_point(self) -> GeoDistanceRangeQueryBuilder:
        if self.ignore_malformed or is_valid_point(self.point):
            return self
        raise PydanticCustomError(
            "malformed_value",
            "illegal point [{lat}, {lon}] for field [{field}]",
            {"lat": self.point.lat, "lon": self.point.lon, "field": self.field_name},
        )

    def from_meters(self) -> float | None:
        return self._resolve(self.from_value)

    def to_meters(self) -> float | None:
        return self._resolve(self.to_value)

    def _resolve(self, bound: TextBound | NumberBound | BooleanBound | None) -> float | None:
        if bound is None:
            return None
        if isinstance(bound, TextBound):
            return parse_distance(bound.value, self.unit)
        if isinstance(bound, BooleanBound):
            raise MalformedValueError(
                f"[{self.NAME}] distance bound must be a number or a string, got [{bound.value}]",
                clause=self.NAME,
            )
        return self.unit.to_meters(float(bound.value))

    def _body(self) -> dict[str, Any]:
        return {
            self.field_name: [self.point.lon, self.point.lat],
            "from": _bound_raw(self.from_value),
            "to": _bound_raw(self.to_value),
            "include_lower": self.include_lower,
            "include_upper": self.include_upper,
            "unit": str(self.unit),
            "distance_type": str(self.distance_type),
            "optimize_bbox": self.optimize_bbox,
            "coerce": self.coerce,
            "ignore_malformed": self.ignore_malformed,
        }


def _translate(clause: str, exc: ValidationError) -> QueryParsingError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or None
    if error["type"] == "missing":
        return MissingRequiredFieldError(
            f"[{clause}] requires '{field}' field", clause=clause, field=field
        )
    where = f" for [{field}]" if field else ""
    return MalformedValueError(f"[{clause}] {error['msg']}{where}", clause=clause, field=field)


def build(builder_cls: type[_B], /, **fields: Any) -> _B:
    """Construct a builder from accumulated fields; `None` means the field was never set.

    Raises:
        MissingRequiredFieldError: If a mandatory field was never set.
        MalformedValueError: If a set value fails validation.
    """

    try:
        return builder_cls(**{name: value for name, value in fields.items() if value is not None})
    except ValidationError as exc:
        raise _translate(builder_cls.NAME, exc) from exc


EMPTY_QUERY = EmptyQueryBuilder()
MATCH_ALL_PROTOTYPE = MatchAllQueryBuilder()
HAS_PARENT_PROTOTYPE = HasParentQueryBuilder(parent_type="", query=EMPTY_QUERY)
GEO_DISTANCE_RANGE_PROTOTYPE = GeoDistanceRangeQueryBuilder(
    field_name="_na", point=GeoPoint(lat=0.0, lon=0.0)
)
