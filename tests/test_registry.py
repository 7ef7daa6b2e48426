"""Tests for the clause registry and top-level query resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.query.builders import (
    EMPTY_QUERY,
    GEO_DISTANCE_RANGE_PROTOTYPE,
    HAS_PARENT_PROTOTYPE,
    MATCH_ALL_PROTOTYPE,
    MatchAllQueryBuilder,
)
from src.query.errors import MalformedValueError, UnrecognizedFieldError
from src.query.parser import parse_query
from src.query.parsers.match_all import MatchAllQueryParser
from src.query.registry import QueryParserRegistry, get_registry, reset_registry


def test_builtin_names_include_camel_case() -> None:
    names = set(get_registry().list())
    assert {
        "has_parent",
        "hasParent",
        "geo_distance_range",
        "geoDistanceRange",
        "match_all",
        "matchAll",
    } <= names


def test_both_spellings_resolve_to_one_parser() -> None:
    registry = get_registry()
    assert registry.get("has_parent") is registry.get("hasParent")
    assert registry.has("geoDistanceRange")
    assert not registry.has("geo_distance")


def test_unknown_name_raises_key_error() -> None:
    with pytest.raises(KeyError, match="Unknown query: bogus"):
        get_registry().get("bogus")


def test_prototypes_are_shared_instances() -> None:
    registry = get_registry()
    assert registry.get("has_parent").prototype() is HAS_PARENT_PROTOTYPE
    assert registry.get("geo_distance_range").prototype() is GEO_DISTANCE_RANGE_PROTOTYPE
    assert registry.get("match_all").prototype() is MATCH_ALL_PROTOTYPE


def test_prototypes_are_frozen() -> None:
    with pytest.raises(ValidationError):
        HAS_PARENT_PROTOTYPE.parent_type = "blog"
    with pytest.raises(ValidationError):
        GEO_DISTANCE_RANGE_PROTOTYPE.coerce = True


def test_default_registry_is_a_singleton_until_reset() -> None:
    first = get_registry()
    assert get_registry() is first
    reset_registry()
    assert get_registry() is not first


def test_custom_registry_limits_known_clauses() -> None:
    registry = QueryParserRegistry()
    registry.register(MatchAllQueryParser())

    assert parse_query({"match_all": {}}, registry=registry) == MatchAllQueryBuilder()
    with pytest.raises(UnrecognizedFieldError) as exc_info:
        parse_query({"has_parent": {}}, registry=registry)
    assert exc_info.value.field == "has_parent"

    registry.clear()
    assert registry.list() == []


def test_empty_document_is_the_empty_query() -> None:
    assert parse_query({}) is EMPTY_QUERY
    assert parse_query("{}") is EMPTY_QUERY
    assert EMPTY_QUERY.to_query_dict() == {}


def test_unknown_top_level_clause() -> None:
    with pytest.raises(UnrecognizedFieldError, match=r"no query registered for \[term\]"):
        parse_query({"term": {"user": "kimchy"}})


@pytest.mark.parametrize(
    "source",
    [
        "[1, 2]",
        '{"match_all": 1}',
        '{"match_all": {}, "extra": 1}',
        '{"match_all": ',
        b"not json",
        b'{"match_all": {"_name": "\xff"}}',
    ],
)
def test_malformed_documents(source: str | bytes) -> None:
    with pytest.raises(MalformedValueError):
        parse_query(source)


def test_match_all_options() -> None:
    builder = parse_query({"matchAll": {"boost": 1.2, "_name": "all"}})
    assert builder == MatchAllQueryBuilder(boost=1.2, query_name="all")
    assert builder.to_query_dict() == {"match_all": {"boost": 1.2, "_name": "all"}}

    with pytest.raises(UnrecognizedFieldError):
        parse_query({"match_all": {"query": {}}})
