"""Per-document parse context and the nested (deferred) query resolver."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.query.builders import EMPTY_QUERY, QueryBuilder
from src.query.errors import (
    MalformedValueError,
    NestedQueryError,
    QueryParsingError,
    UnrecognizedFieldError,
)
from src.query.fields import DeprecationNotice, ParseField, ParseFieldMatcher
from src.xcontent.tokens import Token, TokenCursor

if TYPE_CHECKING:
    from src.query.registry import QueryParserRegistry

logger = logging.getLogger(__name__)

CACHE_FIELD = ParseField("_cache").with_all_deprecated("nothing, caching is decided internally")
CACHE_KEY_FIELD = ParseField("_cache_key").with_all_deprecated(
    "nothing, caching is decided internally"
)


class QueryParseContext:
    """State shared by every clause parser reached while parsing one document.

    The context owns the field matcher (and therefore the strictness policy) and collects
    deprecation notices so callers can report them without inspecting logs.
    """

    def __init__(
            self,
            cursor: TokenCursor,
            *,
            registry: QueryParserRegistry,
            strict: bool = False,
            allow_camel_case: bool = True,
    ) -> None:
        self.cursor = cursor
        self.registry = registry
        self.deprecations: list[DeprecationNotice] = []
        self.matcher = ParseFieldMatcher(
            strict=strict,
            allow_camel_case=allow_camel_case,
            on_deprecation=self.deprecations.append,
        )

    def next_token(self, clause: str) -> Token:
        """Advance the cursor; a truncated stream is a parse error for `clause`."""

        token = self.cursor.next_token()
        if token is None:
            raise MalformedValueError(f"[{clause}] unexpected end of input", clause=clause)
        return token

    def is_deprecated_setting(self, name: str | None) -> bool:
        """Whether `name` is a retired per-clause setting that is accepted and ignored."""

        return self.matcher.match(name, CACHE_FIELD) or self.matcher.match(name, CACHE_KEY_FIELD)

    def parse_inner_query_builder(self, parent: str | None = None) -> QueryBuilder:
        """Parse a `{clause_name: {...}}` object at the cursor into a builder.

        The clause kind is only known once the first field name inside the object has been read.
        `{}` resolves to the empty query. Failures inside a nested clause are wrapped with the
        `parent` clause name when one is given.
        """

        if parent is None:
            return self._parse_inner()

        try:
            return self._parse_inner()
        except QueryParsingError as exc:
            raise NestedQueryError(
                f"[{parent}] failed to parse nested query: {exc}", clause=parent, cause=exc
            ) from exc

    def _parse_inner(self) -> QueryBuilder:
        cursor = self.cursor
        if cursor.current_token is None:
            cursor.next_token()
        if cursor.current_token is not Token.start_object:
            raise MalformedValueError("[_na] query malformed, must start with start_object")

        token = self.next_token("_na")
        if token is Token.end_object:
            return EMPTY_QUERY
        if token is not Token.field_name:
            raise MalformedValueError("[_na] query malformed, no field after start_object")

        name = cursor.current_name()
        token = self.next_token(name)
        if token is not Token.start_object:
            raise MalformedValueError(
                f"[{name}] query malformed, no start_object after query name", clause=name
            )

        try:
            parser = self.registry.get(name)
        except KeyError as exc:
            raise UnrecognizedFieldError(
                f"no query registered for [{name}]", clause=name, field=name
            ) from exc

        logger.debug("parsing [%s] clause", name)
        builder = parser.from_x_content(self)

        token = self.next_token(name)
        if token is not Token.end_object:
            raise MalformedValueError(
                f"[{name}] query malformed, expected [END_OBJECT] but found [{token}]",
                clause=name,
            )
        return builder
