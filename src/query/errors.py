"""Parse errors raised by clause parsers.

Every failure terminates the parse of the current clause; no partial builder is ever returned.
"""

from __future__ import annotations


class QueryParsingError(ValueError):
    """Base class for all clause parse failures."""

    def __init__(self, message: str, *, clause: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause
        self.field = field


class UnrecognizedFieldError(QueryParsingError):
    """Raised when a field name matches no spelling known to the clause."""


class DeprecatedFieldError(UnrecognizedFieldError):
    """Raised instead of a warning when a deprecated spelling is used under strict matching."""


class MalformedValueError(QueryParsingError):
    """Raised when a token cannot be read as the shape or value a field expects."""


class MissingRequiredFieldError(QueryParsingError):
    """Raised at build time when a mandatory field was never set."""


class IncompleteCompositeError(QueryParsingError):
    """Raised at build time when only one half of a paired value was supplied."""


class NestedQueryError(QueryParsingError):
    """Raised when a nested clause fails; wraps the inner error with the parent clause name."""

    def __init__(self, message: str, *, clause: str | None, cause: QueryParsingError) -> None:
        super().__init__(message, clause=clause, field=cause.field)
        self.cause = cause
