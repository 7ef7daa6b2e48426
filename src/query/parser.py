"""Query document parsing entry points."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.query.builders import QueryBuilder
from src.query.context import QueryParseContext
from src.query.errors import MalformedValueError
from src.query.fields import DeprecationNotice
from src.query.registry import QueryParserRegistry, get_registry
from src.xcontent.tokens import TokenCursor, TokenError


@dataclass(frozen=True)
class ParseResult:
    """Parsed builder plus the deprecated spellings seen while parsing it."""

    builder: QueryBuilder
    deprecations: tuple[DeprecationNotice, ...]


def _cursor(source: str | bytes | Mapping[str, Any] | TokenCursor) -> TokenCursor:
    if isinstance(source, TokenCursor):
        return source
    try:
        if isinstance(source, (str, bytes)):
            return TokenCursor.from_json(source)
        return TokenCursor.from_obj(source)
    except TokenError as exc:
        raise MalformedValueError(f"[_na] {exc}") from exc


def parse_query_with_deprecations(
        source: str | bytes | Mapping[str, Any] | TokenCursor,
        *,
        strict: bool = False,
        allow_camel_case: bool = True,
        registry: QueryParserRegistry | None = None,
) -> ParseResult:
    """Parse one `{clause_name: {...}}` document into a builder.

    Strategy:
        1) Turn the source into a token cursor (JSON text, decoded mapping, or a ready cursor).
        2) Resolve the clause through the registry, exactly like a nested query would be.
        3) Return the builder with any deprecation notices collected on the way.

    Raises:
        QueryParsingError: If the document cannot be parsed.
    """

    context = QueryParseContext(
        _cursor(source),
        registry=registry or get_registry(),
        strict=strict,
        allow_camel_case=allow_camel_case,
    )
    builder = context.parse_inner_query_builder()
    return ParseResult(builder=builder, deprecations=tuple(context.deprecations))


def parse_query(
        source: str | bytes | Mapping[str, Any] | TokenCursor,
        *,
        strict: bool = False,
        allow_camel_case: bool = True,
        registry: QueryParserRegistry | None = None,
) -> QueryBuilder:
    """Parse a query document into a builder (convenience wrapper)."""

    return parse_query_with_deprecations(
        source, strict=strict, allow_camel_case=allow_camel_case, registry=registry
    ).builder
