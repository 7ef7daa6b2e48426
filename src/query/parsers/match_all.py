"""Parser for the `match_all` clause."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from src.query.builders import MATCH_ALL_PROTOTYPE, MatchAllQueryBuilder, QueryBuilder, build
from src.query.parsers.base import BOOST_FIELD, NAME_FIELD, QueryParser
from src.xcontent.tokens import Token

if TYPE_CHECKING:
    from src.query.context import QueryParseContext


class MatchAllQueryParser(QueryParser):
    """Parses `match_all` / `matchAll`."""

    NAME: ClassVar[str] = MatchAllQueryBuilder.NAME

    def prototype(self) -> MatchAllQueryBuilder:
        return MATCH_ALL_PROTOTYPE

    def do_from_x_content(self, context: QueryParseContext) -> QueryBuilder:
        cursor = context.cursor
        matcher = context.matcher

        boost = None
        query_name = None

        current_field_name = None
        while (token := context.next_token(self.NAME)) is not Token.end_object:
            if token is Token.field_name:
                current_field_name = cursor.current_name()
            elif not token.is_value:
                raise self.unsupported(current_field_name)
            elif matcher.match(current_field_name, BOOST_FIELD):
                boost = cursor.float_value()
            elif matcher.match(current_field_name, NAME_FIELD):
                query_name = cursor.text()
            else:
                raise self.unsupported(current_field_name)

        return build(MatchAllQueryBuilder, boost=boost, query_name=query_name)
