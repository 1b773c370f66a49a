"""Query compiler: remote-read queries to filter expressions."""

import re
from collections.abc import Callable
from dataclasses import dataclass

from promdoc.core.errors import InvalidMatcherError, UnsupportedMatcherError
from promdoc.core.filters import (
    And,
    Equal,
    FilterExpr,
    NotEqual,
    Range,
    RegexExclude,
    RegexMatch,
    compile_pattern,
)
from promdoc.core.models import (
    LABELS_FIELD,
    MAX_TIMESTAMP_FIELD,
    METRIC_NAME_LABEL,
    MIN_TIMESTAMP_FIELD,
    NAME_FIELD,
    SAMPLES_FIELD,
    LabelMatcher,
    MatchType,
    Query,
)

# Fields a read needs to rebuild wire-format series.
QUERY_PROJECTION: tuple[str, ...] = (LABELS_FIELD, SAMPLES_FIELD)

# Series come back in chronological order of their first sample.
QUERY_SORT_FIELD = MIN_TIMESTAMP_FIELD


@dataclass(frozen=True)
class CompiledQuery:
    """Store-independent form of one read query.

    Attributes:
        filter: Expression selecting candidate documents.
        projection: Document fields to retrieve.
        sort: Field to sort ascending by, or None for store order.
        start_timestamp_ms: Window start, kept for sample clipping.
        end_timestamp_ms: Window end, kept for sample clipping.
    """

    filter: FilterExpr
    projection: tuple[str, ...]
    sort: str | None
    start_timestamp_ms: int
    end_timestamp_ms: int


def label_field(name: str) -> str:
    """Return the document field a matcher on label `name` targets."""
    if name == METRIC_NAME_LABEL:
        return NAME_FIELD
    return f"{LABELS_FIELD}.{name}"


def _checked_pattern(matcher: LabelMatcher) -> str:
    try:
        compile_pattern(matcher.value)
    except re.error as e:
        raise InvalidMatcherError(
            f"invalid regular expression for label {matcher.name!r}: {e}"
        ) from e
    return matcher.value


def _compile_eq(matcher: LabelMatcher) -> FilterExpr:
    return Equal(label_field(matcher.name), matcher.value)


def _compile_neq(matcher: LabelMatcher) -> FilterExpr:
    return NotEqual(label_field(matcher.name), matcher.value)


def _compile_re(matcher: LabelMatcher) -> FilterExpr:
    return RegexMatch(label_field(matcher.name), _checked_pattern(matcher))


def _compile_nre(matcher: LabelMatcher) -> FilterExpr:
    return RegexExclude(label_field(matcher.name), _checked_pattern(matcher))


_MATCHER_COMPILERS: dict[MatchType, Callable[[LabelMatcher], FilterExpr]] = {
    MatchType.EQ: _compile_eq,
    MatchType.NEQ: _compile_neq,
    MatchType.RE: _compile_re,
    MatchType.NRE: _compile_nre,
}


def compile_matcher(matcher: LabelMatcher) -> FilterExpr:
    """Compile a single label matcher.

    Raises:
        UnsupportedMatcherError: The match type is not one of MatchType.
        InvalidMatcherError: A regex matcher carries an invalid pattern.
    """
    try:
        compiler = _MATCHER_COMPILERS[MatchType(matcher.type)]
    except (ValueError, KeyError) as e:
        raise UnsupportedMatcherError(matcher.type) from e
    return compiler(matcher)


def compile_time_overlap(start_ms: int, end_ms: int) -> FilterExpr:
    """Select documents whose [min, max] sample range overlaps the window.

    Only a coarse filter: overlapping documents may still hold samples
    outside the window, which the reconstructor clips.
    """
    return And(
        (
            Range(MIN_TIMESTAMP_FIELD, lte=end_ms),
            Range(MAX_TIMESTAMP_FIELD, gte=start_ms),
        )
    )


def compile_query(query: Query) -> CompiledQuery:
    """Compile a remote-read query.

    An empty matcher list is valid and selects by time range alone.
    """
    clauses: list[FilterExpr] = [
        compile_time_overlap(query.start_timestamp_ms, query.end_timestamp_ms)
    ]
    clauses.extend(compile_matcher(matcher) for matcher in query.matchers)
    return CompiledQuery(
        filter=And(tuple(clauses)),
        projection=QUERY_PROJECTION,
        sort=QUERY_SORT_FIELD,
        start_timestamp_ms=query.start_timestamp_ms,
        end_timestamp_ms=query.end_timestamp_ms,
    )
