"""Parse a query document from a file or stdin and print the resulting builder."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from src.app import create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.query.errors import QueryParsingError

logger = logging.getLogger(__name__)


def _read_source(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit status."""

    parser = argparse.ArgumentParser(description="Parse a query DSL document into a builder.")
    parser.add_argument("path", nargs="?", help="JSON file with the query (default: stdin).")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject deprecated field spellings instead of warning.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO).")
    args = parser.parse_args(argv)

    load_dotenv(".env")
    configure_logging(args.log_level)
    app = create_app(load_settings())

    try:
        source = _read_source(args.path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("cannot read query document path=%s reason=%s", args.path, exc)
        return 1

    try:
        result = app.parse(source, strict=True if args.strict else None)
    except QueryParsingError as exc:
        logger.error("parse failed clause=%s field=%s reason=%s", exc.clause, exc.field, exc)
        return 1

    for notice in result.deprecations:
        logger.info("deprecated used=%s replacement=%s", notice.used, notice.replacement)

    print(json.dumps(result.builder.to_query_dict(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
