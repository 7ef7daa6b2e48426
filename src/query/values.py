"""Bound values (Pydantic tagged union) and their coercion from scalar tokens.

Range bounds keep track of whether the original token was textual: `"2km"` and `2` mean different
things to the unit-aware code downstream, so the value is never collapsed to a single numeric type.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.xcontent.tokens import Token, TokenCursor


class TextBound(BaseModel):
    """A bound given as a string token; passed through verbatim."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["string"] = "string"
    value: str


class NumberBound(BaseModel):
    """A bound given as a number token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["number"] = "number"
    value: int | float


class BooleanBound(BaseModel):
    """A bound given as a boolean token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["boolean"] = "boolean"
    value: bool


BoundValue = Annotated[TextBound | NumberBound | BooleanBound, Field(discriminator="kind")]


def coerce_bound_value(cursor: TokenCursor) -> TextBound | NumberBound | BooleanBound | None:
    """Read the current scalar token as a bound value.

    Returns:
        `None` for a null token (the bound is treated as unset, not as an explicit null).

    Raises:
        TokenError: If the current token is not a scalar.
    """

    token = cursor.current_token
    if token is Token.value_null:
        return None
    if token is Token.value_string:
        return TextBound(value=cursor.text())
    if token is Token.value_boolean:
        return BooleanBound(value=cursor.boolean_value())
    return NumberBound(value=cursor.number_value())
