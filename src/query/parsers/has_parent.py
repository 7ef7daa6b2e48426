"""Parser for the `has_parent` relationship-join clause.

    {
        "has_parent": {
            "parent_type": "blog",
            "query": {"match_all": {}},
            "score": true
        }
    }
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from src.query.builders import (
    HAS_PARENT_PROTOTYPE,
    HasParentQueryBuilder,
    InnerHits,
    QueryBuilder,
    build,
)
from src.query.errors import MalformedValueError, UnrecognizedFieldError
from src.query.fields import ParseField
from src.query.parsers.base import BOOST_FIELD, NAME_FIELD, QueryParser
from src.xcontent.tokens import Token, TokenCursor

if TYPE_CHECKING:
    from src.query.context import QueryParseContext

QUERY_FIELD = ParseField("query", ("filter",))
TYPE_FIELD = ParseField("parent_type", ("type",))
SCORE_FIELD = ParseField("score")
SCORE_MODE_FIELD = ParseField("score_type", ("score_mode",)).with_all_deprecated("score")
INNER_HITS_FIELD = ParseField("inner_hits")

_KNOWN_FIELDS = (
    QUERY_FIELD,
    TYPE_FIELD,
    SCORE_FIELD,
    SCORE_MODE_FIELD,
    INNER_HITS_FIELD,
    BOOST_FIELD,
    NAME_FIELD,
)

# Legacy score mode values; anything else leaves the score flag untouched.
_LEGACY_SCORE_VALUES: dict[str, bool] = {"score": True, "none": False}

_INNER_HITS_SECTION = "inner_hits"
_INNER_HITS_FIELDS: tuple[tuple[ParseField, str, Callable[[TokenCursor], Any]], ...] = (
    (ParseField("name"), "name", TokenCursor.text),
    (ParseField("from"), "from_", TokenCursor.int_value),
    (ParseField("size"), "size", TokenCursor.int_value),
    (ParseField("explain"), "explain", TokenCursor.boolean_value),
    (ParseField("version"), "version", TokenCursor.boolean_value),
    (ParseField("track_scores"), "track_scores", TokenCursor.boolean_value),
)


def _parse_inner_hits(context: QueryParseContext) -> InnerHits:
    cursor = context.cursor
    values: dict[str, Any] = {}

    current_field_name = None
    while (token := context.next_token(_INNER_HITS_SECTION)) is not Token.end_object:
        if token is Token.field_name:
            current_field_name = cursor.current_name()
            continue

        for field, attr, read in _INNER_HITS_FIELDS:
            if context.matcher.match(current_field_name, field):
                if not token.is_value:
                    raise MalformedValueError(
                        f"[{_INNER_HITS_SECTION}] [{current_field_name}] must be a value",
                        clause=_INNER_HITS_SECTION,
                        field=current_field_name,
                    )
                values[attr] = read(cursor)
                break
        else:
            raise UnrecognizedFieldError(
                f"[{_INNER_HITS_SECTION}] does not support [{current_field_name}]",
                clause=_INNER_HITS_SECTION,
                field=current_field_name,
            )

    return InnerHits(**values)


class HasParentQueryParser(QueryParser):
    """Parses `has_parent` / `hasParent`."""

    NAME: ClassVar[str] = HasParentQueryBuilder.NAME

    def prototype(self) -> HasParentQueryBuilder:
        return HAS_PARENT_PROTOTYPE

    def do_from_x_content(self, context: QueryParseContext) -> QueryBuilder:
        cursor = context.cursor
        matcher = context.matcher

        boost: float | None = None
        parent_type: str | None = None
        score: bool | None = None
        query_name: str | None = None
        inner_hits: InnerHits | None = None
        inner_query: QueryBuilder | None = None

        current_field_name = None
        while (token := context.next_token(self.NAME)) is not Token.end_object:
            if token is Token.field_name:
                current_field_name = cursor.current_name()
            elif token is Token.start_object:
                if matcher.match(current_field_name, QUERY_FIELD):
                    inner_query = context.parse_inner_query_builder(parent=self.NAME)
                elif matcher.match(current_field_name, INNER_HITS_FIELD):
                    inner_hits = _parse_inner_hits(context)
                elif matcher.recognizes(current_field_name, *_KNOWN_FIELDS):
                    raise self.malformed(current_field_name, token)
                else:
                    raise self.unsupported(current_field_name)
            elif token.is_value:
                if matcher.match(current_field_name, TYPE_FIELD):
                    parent_type = cursor.text()
                elif matcher.match(current_field_name, SCORE_MODE_FIELD):
                    # Replaced by the boolean `score` flag; both write the same slot.
                    legacy = _LEGACY_SCORE_VALUES.get(cursor.text_or_null() or "")
                    if legacy is not None:
                        score = legacy
                elif matcher.match(current_field_name, SCORE_FIELD):
                    score = cursor.boolean_value()
                elif matcher.match(current_field_name, BOOST_FIELD):
                    boost = cursor.float_value()
                elif matcher.match(current_field_name, NAME_FIELD):
                    query_name = cursor.text()
                elif matcher.recognizes(current_field_name, *_KNOWN_FIELDS):
                    raise self.malformed(current_field_name, token)
                else:
                    raise self.unsupported(current_field_name)
            elif matcher.recognizes(current_field_name, *_KNOWN_FIELDS):
                raise self.malformed(current_field_name, token)
            else:
                raise self.unsupported(current_field_name)

        return build(
            HasParentQueryBuilder,
            parent_type=parent_type,
            query=inner_query,
            score=score,
            inner_hits=inner_hits,
            boost=boost,
            query_name=query_name,
        )
