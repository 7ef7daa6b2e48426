"""Query clause parsing.

Clause parsers pull tokens from a `TokenCursor` and produce immutable builder objects that describe
one query clause each. Nested clauses are resolved through the parser registry, so any registered
clause kind can appear wherever a query is expected.
"""
