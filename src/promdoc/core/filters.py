"""Closed set of filter expressions over series documents.

The query compiler builds trees out of these variants. Storage adapters
render them into their native query language (MongoDB query documents,
SQL) or evaluate them directly with evaluate().
"""

import functools
import re
from dataclasses import dataclass
from typing import Any, Union, assert_never

from promdoc.core.models import Document


@dataclass(frozen=True)
class Equal:
    """Field is present and equals value."""

    field: str
    value: str


@dataclass(frozen=True)
class NotEqual:
    """Field is present and differs from value."""

    field: str
    value: str


@dataclass(frozen=True)
class RegexMatch:
    """Field is present and fully matches pattern."""

    field: str
    pattern: str


@dataclass(frozen=True)
class RegexExclude:
    """Field is missing or does not fully match pattern."""

    field: str
    pattern: str


@dataclass(frozen=True)
class Range:
    """Field is present and lies within the inclusive bounds given."""

    field: str
    gte: int | None = None
    lte: int | None = None


@dataclass(frozen=True)
class And:
    """All clauses hold. An empty conjunction matches every document."""

    clauses: tuple["FilterExpr", ...] = ()


FilterExpr = Union[Equal, NotEqual, RegexMatch, RegexExclude, Range, And]

_MISSING = object()


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a label regex. Raises re.error for invalid patterns."""
    return re.compile(pattern)


def full_match(pattern: str, value: str) -> bool:
    """Return True if value matches pattern from start to end."""
    return compile_pattern(pattern).fullmatch(value) is not None


def resolve_field(document: Document, path: str) -> Any:
    """Resolve a dotted field path in a nested document.

    Returns the module-private missing sentinel when any segment is absent;
    use field_present() to test for it.
    """
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def field_present(value: Any) -> bool:
    return value is not _MISSING


def evaluate(expr: FilterExpr, document: Document) -> bool:
    """Evaluate a filter expression against a plain document."""
    if isinstance(expr, And):
        return all(evaluate(clause, document) for clause in expr.clauses)

    value = resolve_field(document, expr.field)
    if isinstance(expr, Equal):
        return field_present(value) and value == expr.value
    if isinstance(expr, NotEqual):
        return field_present(value) and value != expr.value
    if isinstance(expr, RegexMatch):
        return isinstance(value, str) and full_match(expr.pattern, value)
    if isinstance(expr, RegexExclude):
        return not (isinstance(value, str) and full_match(expr.pattern, value))
    if isinstance(expr, Range):
        if not field_present(value) or value is None:
            return False
        if expr.gte is not None and value < expr.gte:
            return False
        if expr.lte is not None and value > expr.lte:
            return False
        return True
    assert_never(expr)
