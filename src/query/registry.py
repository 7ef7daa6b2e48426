"""Registry mapping clause names to their parsers."""

from __future__ import annotations

from src.query.parsers.base import QueryParser
from src.query.parsers.geo_distance_range import GeoDistanceRangeQueryParser
from src.query.parsers.has_parent import HasParentQueryParser
from src.query.parsers.match_all import MatchAllQueryParser


class QueryParserRegistry:
    """Clause-name index over parser instances.

    Every name a parser reports (snake_case and camelCase) is indexed, so nested clauses resolve
    under either spelling.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, QueryParser] = {}

    def register(self, parser: QueryParser) -> None:
        for name in parser.names():
            self._parsers[name] = parser

    def get(self, name: str | None) -> QueryParser:
        if name not in self._parsers:
            raise KeyError(f"Unknown query: {name}")
        return self._parsers[name]

    def has(self, name: str) -> bool:
        return name in self._parsers

    def list(self) -> list[str]:
        return list(self._parsers.keys())

    def load_builtin(self) -> None:
        for parser in (HasParentQueryParser(), GeoDistanceRangeQueryParser(), MatchAllQueryParser()):
            self.register(parser)

    def clear(self) -> None:
        self._parsers.clear()


_default_registry: QueryParserRegistry | None = None


def get_registry() -> QueryParserRegistry:
    """Get the process-wide registry with the built-in clauses loaded."""

    global _default_registry
    if _default_registry is None:
        _default_registry = QueryParserRegistry()
        _default_registry.load_builtin()
    return _default_registry


def reset_registry() -> None:
    global _default_registry
    _default_registry = None
