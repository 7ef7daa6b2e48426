"""Clause parsers, one module per clause kind."""
