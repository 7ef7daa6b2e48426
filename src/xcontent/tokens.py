"""Pull-based token cursor over decoded JSON documents.

The whole document is flattened into a list of events up front, so advancing the cursor never
blocks. Object keys keep their document order and duplicates are preserved, which lets parsers
apply last-token-wins rules exactly as the author wrote them.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TokenError(ValueError):
    """Raised when the current token cannot be read as the requested kind."""


class Token(StrEnum):
    """Kinds of tokens produced by the cursor."""

    start_object = "START_OBJECT"
    end_object = "END_OBJECT"
    start_array = "START_ARRAY"
    end_array = "END_ARRAY"
    field_name = "FIELD_NAME"
    value_string = "VALUE_STRING"
    value_number = "VALUE_NUMBER"
    value_boolean = "VALUE_BOOLEAN"
    value_null = "VALUE_NULL"

    @property
    def is_value(self) -> bool:
        """Whether the token is a scalar (including null)."""

        return self in _VALUE_TOKENS


_VALUE_TOKENS = frozenset(
    {Token.value_string, Token.value_number, Token.value_boolean, Token.value_null}
)


class _Pairs(list):
    """Ordered `(key, value)` pairs of one JSON object, duplicates included."""


@dataclass(frozen=True)
class _Event:
    token: Token
    name: str | None = None
    value: Any = None


def _scalar_event(value: Any, name: str | None) -> _Event:
    if value is None:
        return _Event(Token.value_null, name)
    if isinstance(value, bool):
        return _Event(Token.value_boolean, name, value)
    if isinstance(value, (int, float)):
        return _Event(Token.value_number, name, value)
    if isinstance(value, str):
        return _Event(Token.value_string, name, value)
    raise TokenError(f"unsupported value type [{type(value).__name__}]")


def _flatten(value: Any, name: str | None = None) -> Iterator[_Event]:
    if isinstance(value, (_Pairs, Mapping)):
        items = value if isinstance(value, _Pairs) else value.items()
        yield _Event(Token.start_object, name)
        for key, item in items:
            yield _Event(Token.field_name, key)
            yield from _flatten(item, key)
        yield _Event(Token.end_object, name)
    elif isinstance(value, (list, tuple)):
        yield _Event(Token.start_array, name)
        for item in value:
            yield from _flatten(item, name)
        yield _Event(Token.end_array, name)
    else:
        yield _scalar_event(value, name)


class TokenCursor:
    """A forward-only cursor over a pre-buffered token stream.

    `next_token()` returns `None` once the stream is exhausted; callers decide whether that is a
    truncated document or the natural end.
    """

    def __init__(self, events: list[_Event]) -> None:
        self._events = events
        self._pos = -1

    @classmethod
    def from_obj(cls, value: Any) -> TokenCursor:
        """Build a cursor over an already decoded document (dicts, lists, scalars)."""

        return cls(list(_flatten(value)))

    @classmethod
    def from_json(cls, text: str | bytes) -> TokenCursor:
        """Decode JSON text into a cursor, keeping duplicate object keys in order."""

        try:
            decoded = json.loads(text, object_pairs_hook=_Pairs)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TokenError(f"invalid JSON document: {exc}") from exc
        return cls(list(_flatten(decoded)))

    @property
    def current_token(self) -> Token | None:
        if 0 <= self._pos < len(self._events):
            return self._events[self._pos].token
        return None

    def next_token(self) -> Token | None:
        if self._pos < len(self._events):
            self._pos += 1
        return self.current_token

    def current_name(self) -> str | None:
        """Field name the current token belongs to (the name itself on `FIELD_NAME`)."""

        if 0 <= self._pos < len(self._events):
            return self._events[self._pos].name
        return None

    def skip_children(self) -> None:
        """Advance to the matching end token when positioned on an object or array start."""

        if self.current_token not in {Token.start_object, Token.start_array}:
            return

        depth = 1
        while depth:
            token = self.next_token()
            if token is None:
                raise TokenError("unexpected end of input while skipping children")
            if token in {Token.start_object, Token.start_array}:
                depth += 1
            elif token in {Token.end_object, Token.end_array}:
                depth -= 1

    def _event(self) -> _Event:
        if not 0 <= self._pos < len(self._events):
            raise TokenError("no current token")
        return self._events[self._pos]

    def text(self) -> str:
        event = self._event()
        if event.token is Token.value_string:
            return event.value
        if event.token is Token.value_number:
            return str(event.value)
        if event.token is Token.value_boolean:
            return "true" if event.value else "false"
        raise TokenError(f"current token [{event.token}] is not a text value")

    def text_or_null(self) -> str | None:
        if self.current_token is Token.value_null:
            return None
        return self.text()

    def number_value(self) -> int | float:
        """Numeric reading of the current token; numeric strings are accepted."""

        event = self._event()
        if event.token is Token.value_number:
            return event.value
        if event.token is Token.value_string:
            raw = event.value.strip()
            try:
                return int(raw)
            except ValueError:
                pass
            try:
                return float(raw)
            except ValueError as exc:
                raise TokenError(f"[{event.value}] is not a number") from exc
        raise TokenError(f"current token [{event.token}] is not a number")

    def float_value(self) -> float:
        return float(self.number_value())

    def int_value(self) -> int:
        value = self.number_value()
        try:
            return int(value)
        except (OverflowError, ValueError) as exc:
            raise TokenError(f"[{value}] is not an integer") from exc

    def boolean_value(self) -> bool:
        event = self._event()
        if event.token is Token.value_boolean:
            return event.value
        if event.token is Token.value_number:
            return event.value != 0
        if event.token is Token.value_string:
            if event.value == "true":
                return True
            if event.value == "false":
                return False
            raise TokenError(f"[{event.value}] is not a boolean")
        raise TokenError(f"current token [{event.token}] is not a boolean")
