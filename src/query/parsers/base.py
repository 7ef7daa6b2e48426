"""Shared contract for clause parsers.

A parser is handed a context whose cursor sits on the `START_OBJECT` of the clause body. It pulls
tokens until the matching `END_OBJECT`, keeps what it reads in local variables and only then builds
the immutable builder. The cursor is left on that `END_OBJECT`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from src.query.builders import QueryBuilder
from src.query.errors import MalformedValueError, QueryParsingError, UnrecognizedFieldError
from src.query.fields import ParseField, to_camel_case
from src.xcontent.tokens import Token, TokenError

if TYPE_CHECKING:
    from src.query.context import QueryParseContext

BOOST_FIELD = ParseField("boost")
NAME_FIELD = ParseField("_name")


class QueryParser(ABC):
    """Parses one clause kind."""

    NAME: ClassVar[str]

    def names(self) -> tuple[str, ...]:
        """Clause names this parser is registered under."""

        return self.NAME, to_camel_case(self.NAME)

    @abstractmethod
    def prototype(self) -> QueryBuilder:
        """The shared, never-mutated default instance of this clause's builder."""

    def from_x_content(self, context: QueryParseContext) -> QueryBuilder:
        """Parse the clause body at the cursor.

        Raises:
            QueryParsingError: On any unrecognized field, malformed value or failed build.
        """

        try:
            return self.do_from_x_content(context)
        except TokenError as exc:
            field = context.cursor.current_name()
            raise MalformedValueError(
                f"[{self.NAME}] {exc} for [{field}]", clause=self.NAME, field=field
            ) from exc
        except QueryParsingError as exc:
            if exc.clause is None:
                exc.clause = self.NAME
            raise

    @abstractmethod
    def do_from_x_content(self, context: QueryParseContext) -> QueryBuilder:
        ...

    def unsupported(self, field_name: str | None) -> UnrecognizedFieldError:
        return UnrecognizedFieldError(
            f"[{self.NAME}] query does not support [{field_name}]",
            clause=self.NAME,
            field=field_name,
        )

    def malformed(self, field_name: str | None, token: Token) -> MalformedValueError:
        return MalformedValueError(
            f"[{self.NAME}] unexpected token [{token}] for [{field_name}]",
            clause=self.NAME,
            field=field_name,
        )
