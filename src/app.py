"""Application composition root.

This module wires together configuration and the clause parser registry.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.config.settings import Settings
from src.query.parser import ParseResult, parse_query_with_deprecations
from src.query.registry import QueryParserRegistry, get_registry


@dataclass(frozen=True)
class App:
    """Shared dependencies for query parsing entry points."""

    settings: Settings
    registry: QueryParserRegistry

    def parse(self, source: str | bytes, *, strict: bool | None = None) -> ParseResult:
        """Parse a query document under the configured matching policy."""

        return parse_query_with_deprecations(
            source,
            strict=self.settings.strict_parsing if strict is None else strict,
            allow_camel_case=self.settings.allow_camel_case,
            registry=self.registry,
        )


def create_app(settings: Settings, registry: QueryParserRegistry | None = None) -> App:
    """Create the application container (defaults to the process-wide registry)."""

    return App(settings=settings, registry=registry or get_registry())
