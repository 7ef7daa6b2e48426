"""Geographic points, geohashes, distance units and composite point decoding.

A point field can arrive in four shapes:
    - array `[lon, lat]` (or `[lon, lat, alt]`),
    - object `{"lat": .., "lon": ..}` or `{"geohash": ..}`,
    - suffixed scalars `field.lat` / `field.lon` / `field.geohash`,
    - a string `"lat,lon"` or a geohash.
The first, second and fourth shapes decode in one go; suffixed scalars are collected by a
`PointAccumulator` and checked for completeness only when the clause ends.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from src.query.errors import IncompleteCompositeError, MalformedValueError
from src.xcontent.tokens import Token, TokenCursor, TokenError

LAT_SUFFIX = ".lat"
LON_SUFFIX = ".lon"
GEOHASH_SUFFIX = ".geohash"

_LAT_NAMES = ("lat", "latitude")
_LON_NAMES = ("lon", "longitude")
_GEOHASH_NAME = "geohash"

_GEOHASH_ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
_GEOHASH_DECODE = {char: idx for idx, char in enumerate(_GEOHASH_ALPHABET)}


class GeoPoint(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lat: float
    lon: float

    @classmethod
    def from_geohash(cls, geohash: str) -> GeoPoint:
        return decode_geohash(geohash)

    @classmethod
    def from_string(cls, value: str) -> GeoPoint:
        """Parse `"lat,lon"`; anything without a comma is read as a geohash."""

        if "," not in value:
            return decode_geohash(value)

        parts = value.split(",")
        if len(parts) != 2:
            raise MalformedValueError(f"geo point [{value}] must be formatted as [lat,lon]")
        try:
            lat = float(parts[0].strip())
            lon = float(parts[1].strip())
        except ValueError as exc:
            raise MalformedValueError(f"geo point [{value}] has a non-numeric coordinate") from exc
        return cls(lat=lat, lon=lon)


def decode_geohash(geohash: str) -> GeoPoint:
    """Decode a geohash into the centre point of its cell."""

    if not geohash:
        raise MalformedValueError("empty geohash")

    lat_lo, lat_hi = -90.0, 90.0
    lon_lo, lon_hi = -180.0, 180.0
    even_bit = True
    for char in geohash.lower():
        try:
            bits = _GEOHASH_DECODE[char]
        except KeyError as exc:
            raise MalformedValueError(
                f"unsupported symbol [{char}] in geohash [{geohash}]"
            ) from exc

        for shift in range(4, -1, -1):
            bit = (bits >> shift) & 1
            if even_bit:
                mid = (lon_lo + lon_hi) / 2
                if bit:
                    lon_lo = mid
                else:
                    lon_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if bit:
                    lat_lo = mid
                else:
                    lat_hi = mid
            even_bit = not even_bit

    return GeoPoint(lat=(lat_lo + lat_hi) / 2, lon=(lon_lo + lon_hi) / 2)


def _centered_modulus(dividend: float, divisor: float) -> float:
    value = math.fmod(dividend, divisor)
    if value <= 0:
        value += divisor
    if value > divisor / 2:
        value -= divisor
    return value


def normalize_point(point: GeoPoint) -> GeoPoint:
    """Wrap an out-of-range point back onto the globe.

    Latitudes past a pole fold back and shift the longitude by 180 degrees; longitudes are wrapped
    into (-180, 180].
    """

    lat, lon = point.lat, point.lon
    norm_lat = lat > 90 or lat <= -90
    norm_lon = lon > 180 or lon <= -180

    if norm_lat:
        lat = _centered_modulus(lat, 360)
        shift = True
        if lat < -90:
            lat = -180 - lat
        elif lat > 90:
            lat = 180 - lat
        else:
            shift = False
        if shift:
            if norm_lon:
                lon += 180
            else:
                lon += -180 if lon > 0 else 180

    if norm_lon:
        lon = _centered_modulus(lon, 360)

    return GeoPoint(lat=lat, lon=lon)


def is_valid_point(point: GeoPoint) -> bool:
    return -90 <= point.lat <= 90 and -180 <= point.lon <= 180


class DistanceUnit(StrEnum):
    """Supported distance units (values are the canonical short names)."""

    inch = "in"
    yards = "yd"
    feet = "ft"
    kilometers = "km"
    nautical_miles = "NM"
    millimeters = "mm"
    centimeters = "cm"
    miles = "mi"
    meters = "m"

    @classmethod
    def from_string(cls, name: str) -> DistanceUnit:
        try:
            return _UNIT_NAMES[name]
        except KeyError as exc:
            raise MalformedValueError(f"No distance unit match [{name}]") from exc

    def to_meters(self, distance: float) -> float:
        return distance * _METERS_PER_UNIT[self]


_METERS_PER_UNIT: dict[DistanceUnit, float] = {
    DistanceUnit.inch: 0.0254,
    DistanceUnit.yards: 0.9144,
    DistanceUnit.feet: 0.3048,
    DistanceUnit.kilometers: 1000.0,
    DistanceUnit.nautical_miles: 1852.0,
    DistanceUnit.millimeters: 0.001,
    DistanceUnit.centimeters: 0.01,
    DistanceUnit.miles: 1609.344,
    DistanceUnit.meters: 1.0,
}

_UNIT_SYNONYMS: dict[DistanceUnit, tuple[str, ...]] = {
    DistanceUnit.inch: ("in", "inch"),
    DistanceUnit.yards: ("yd", "yards"),
    DistanceUnit.feet: ("ft", "feet"),
    DistanceUnit.kilometers: ("km", "kilometers"),
    DistanceUnit.nautical_miles: ("NM", "nmi", "nauticalmiles"),
    DistanceUnit.millimeters: ("mm", "millimeters"),
    DistanceUnit.centimeters: ("cm", "centimeters"),
    DistanceUnit.miles: ("mi", "miles"),
    DistanceUnit.meters: ("m", "meters"),
}

_UNIT_NAMES: dict[str, DistanceUnit] = {
    name: unit for unit, names in _UNIT_SYNONYMS.items() for name in names
}

# Longest first so "km" wins over "m" and "nauticalmiles" over "miles".
_UNIT_SUFFIXES: list[str] = sorted(_UNIT_NAMES, key=lambda s: (-len(s), s))


def parse_distance(text: str, default_unit: DistanceUnit) -> float:
    """Parse `"12km"`-style text into metres; a bare number is read in `default_unit`."""

    value = text.strip()
    unit = default_unit
    for suffix in _UNIT_SUFFIXES:
        if value.endswith(suffix):
            unit = _UNIT_NAMES[suffix]
            value = value[: -len(suffix)].strip()
            break

    try:
        return unit.to_meters(float(value))
    except ValueError as exc:
        raise MalformedValueError(f"failed to parse distance [{text}]") from exc


class GeoDistance(StrEnum):
    """How distances between points are computed."""

    arc = "arc"
    sloppy_arc = "sloppy_arc"
    plane = "plane"
    factor = "factor"

    @classmethod
    def from_string(cls, name: str) -> GeoDistance:
        try:
            return cls(name.lower())
        except ValueError as exc:
            raise MalformedValueError(f"No geo distance for [{name}]") from exc


OptimizeBbox = Literal["memory", "indexed", "none"]


def _coordinate(cursor: TokenCursor, name: str) -> float:
    try:
        return cursor.float_value()
    except TokenError as exc:
        raise MalformedValueError(f"geo point field [{name}] must be a number") from exc


def _parse_point_object(cursor: TokenCursor) -> GeoPoint:
    lat: float | None = None
    lon: float | None = None
    geohash: str | None = None

    while (token := cursor.next_token()) is not Token.end_object:
        if token is None:
            raise MalformedValueError("unexpected end of input inside geo point object")
        if token is not Token.field_name:
            raise MalformedValueError(f"unexpected token [{token}] inside geo point object")

        name = cursor.current_name()
        cursor.next_token()
        if name in _LAT_NAMES:
            lat = _coordinate(cursor, name)
        elif name in _LON_NAMES:
            lon = _coordinate(cursor, name)
        elif name == _GEOHASH_NAME:
            try:
                geohash = cursor.text()
            except TokenError as exc:
                raise MalformedValueError("geohash must be a string") from exc
        else:
            raise MalformedValueError("field must be either [lat], [lon] or [geohash]")

    if geohash is not None:
        if lat is not None or lon is not None:
            raise MalformedValueError("field must be either lat/lon or geohash")
        return decode_geohash(geohash)
    if lat is None:
        raise MalformedValueError("field [lat] missing")
    if lon is None:
        raise MalformedValueError("field [lon] missing")
    return GeoPoint(lat=lat, lon=lon)


def _parse_point_array(cursor: TokenCursor) -> GeoPoint:
    coordinates: list[float] = []
    while (token := cursor.next_token()) is not Token.end_array:
        if token is None:
            raise MalformedValueError("unexpected end of input inside geo point array")
        if len(coordinates) < 3:
            coordinates.append(_coordinate(cursor, "lon" if not coordinates else "lat"))
        else:
            cursor.skip_children()

    if len(coordinates) < 2:
        raise MalformedValueError("geo point array must contain [lon, lat]")
    return GeoPoint(lat=coordinates[1], lon=coordinates[0])


def parse_geo_point(cursor: TokenCursor) -> GeoPoint:
    """Decode a point from the current token (object, array or string).

    Raises:
        MalformedValueError: If the token shape or its content is not a valid point.
    """

    token = cursor.current_token
    if token is Token.start_object:
        return _parse_point_object(cursor)
    if token is Token.start_array:
        return _parse_point_array(cursor)
    if token is Token.value_string:
        return GeoPoint.from_string(cursor.text())
    raise MalformedValueError(f"geo point expected an object, array or string but got [{token}]")


def strip_point_suffix(name: str) -> tuple[str, str] | None:
    """Split `field.lat` style names into `(base_field, suffix)`."""

    for suffix in (LAT_SUFFIX, LON_SUFFIX, GEOHASH_SUFFIX):
        if name.endswith(suffix):
            return name[: -len(suffix)], suffix
    return None


@dataclass
class PointAccumulator:
    """Parse-local state for one composite point field.

    Whichever shape is seen last wins: a full point, a geohash or the suffixed pair. Suffixed
    latitude and longitude merge with each other only while they target the same base field.
    """

    field_name: str | None = None
    lat: float | None = None
    lon: float | None = None
    geohash: str | None = None
    _shape: str | None = None

    def _start(self, field_name: str, shape: str) -> None:
        if field_name != self.field_name or shape != self._shape or shape != "suffix":
            self.lat = None
            self.lon = None
            self.geohash = None
        self.field_name = field_name
        self._shape = shape

    def set_point(self, field_name: str, point: GeoPoint) -> None:
        self._start(field_name, "point")
        self.lat, self.lon = point.lat, point.lon

    def set_geohash(self, field_name: str, geohash: str) -> None:
        self._start(field_name, "geohash")
        self.geohash = geohash

    def set_lat(self, field_name: str, lat: float) -> None:
        self._start(field_name, "suffix")
        self.lat = lat

    def set_lon(self, field_name: str, lon: float) -> None:
        self._start(field_name, "suffix")
        self.lon = lon

    def resolve(self, clause: str) -> GeoPoint | None:
        """Return the accumulated point, decoding a pending geohash.

        Raises:
            IncompleteCompositeError: If only one of latitude/longitude was supplied.
        """

        if self.geohash is not None:
            return decode_geohash(self.geohash)
        if self.lat is None and self.lon is None:
            return None
        if self.lat is None or self.lon is None:
            missing = "latitude" if self.lat is None else "longitude"
            raise IncompleteCompositeError(
                f"[{clause}] point field [{self.field_name}] is missing its {missing}",
                clause=clause,
                field=self.field_name,
            )
        return GeoPoint(lat=self.lat, lon=self.lon)
