"""Field name matching with deprecated spellings.

A `ParseField` is a static table of the spellings one logical field accepts. Matching is exact per
spelling; the optional camelCase variants are derived from the snake_case names, never guessed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from src.query.errors import DeprecatedFieldError

logger = logging.getLogger(__name__)


def to_camel_case(value: str) -> str:
    """Convert `snake_case` to `camelCase`, keeping leading underscores (`_first_name` -> `_firstName`)."""

    body = value.lstrip("_")
    prefix = value[: len(value) - len(body)]
    head, *rest = body.split("_")
    return prefix + head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass(frozen=True)
class ParseField:
    """One logical field and the spellings it may arrive under.

    `deprecated_names` are accepted with a deprecation notice. When `all_replaced_with` is set,
    the canonical name is deprecated too and the notice points at the replacement field.
    """

    name: str
    deprecated_names: tuple[str, ...] = ()
    all_replaced_with: str | None = None

    def with_all_deprecated(self, replacement: str) -> ParseField:
        return replace(self, all_replaced_with=replacement)

    def spellings(self, *, camel_case: bool = True) -> tuple[tuple[str, bool], ...]:
        """Ordered `(spelling, deprecated)` pairs accepted for this field."""

        names = [(self.name, self.all_replaced_with is not None)]
        names.extend((name, True) for name in self.deprecated_names)

        result: list[tuple[str, bool]] = []
        seen: set[str] = set()
        for name, deprecated in names:
            variants = (name, to_camel_case(name)) if camel_case else (name,)
            for variant in variants:
                if variant not in seen:
                    seen.add(variant)
                    result.append((variant, deprecated))
        return tuple(result)


@dataclass(frozen=True)
class DeprecationNotice:
    """A deprecated spelling seen during a parse (reported out-of-band, never an error)."""

    used: str
    replacement: str
    message: str


class ParseFieldMatcher:
    """Match raw field names against `ParseField` tables under one strictness policy."""

    def __init__(
            self,
            *,
            strict: bool = False,
            allow_camel_case: bool = True,
            on_deprecation: Callable[[DeprecationNotice], None] | None = None,
    ) -> None:
        self.strict = strict
        self.allow_camel_case = allow_camel_case
        self._on_deprecation = on_deprecation

    def lookup(self, raw_name: str | None, field: ParseField) -> tuple[str, bool] | None:
        """Return the matching `(spelling, deprecated)` pair, if any. Has no side effects."""

        if raw_name is None:
            return None
        for spelling, deprecated in field.spellings(camel_case=self.allow_camel_case):
            if spelling == raw_name:
                return spelling, deprecated
        return None

    def is_deprecated(self, raw_name: str | None, field: ParseField) -> bool:
        hit = self.lookup(raw_name, field)
        return hit is not None and hit[1]

    def recognizes(self, raw_name: str | None, *fields: ParseField) -> bool:
        """Whether any of `fields` accepts `raw_name` (deprecated spellings included)."""

        return any(self.lookup(raw_name, field) is not None for field in fields)

    def match(self, raw_name: str | None, field: ParseField) -> bool:
        """Whether `raw_name` names `field`.

        Raises:
            DeprecatedFieldError: If the spelling is deprecated and strict matching is enabled.
        """

        hit = self.lookup(raw_name, field)
        if hit is None:
            return False

        spelling, deprecated = hit
        if deprecated:
            self._deprecated(spelling, field)
        return True

    def _deprecated(self, spelling: str, field: ParseField) -> None:
        if field.all_replaced_with is not None:
            replacement = field.all_replaced_with
            message = f"Deprecated field [{spelling}] used, replaced by [{replacement}]"
        else:
            replacement = field.name
            message = f"Deprecated field [{spelling}] used, expected [{replacement}] instead"

        if self.strict:
            raise DeprecatedFieldError(message, field=spelling)

        logger.warning(message)
        if self._on_deprecation is not None:
            self._on_deprecation(
                DeprecationNotice(used=spelling, replacement=replacement, message=message)
            )
