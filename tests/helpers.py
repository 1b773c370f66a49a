"""Builders shared by tests."""

from promdoc.core.models import Label, LabelMatcher, MatchType, Sample, TimeSeries


def make_series(
    labels: dict[str, str],
    samples: list[tuple[int, float]] | None = None,
) -> TimeSeries:
    """Build a wire-format series from a label dict and (ts, value) pairs."""
    return TimeSeries(
        labels=tuple(Label(name=k, value=v) for k, v in labels.items()),
        samples=tuple(Sample(timestamp=ts, value=v) for ts, v in samples or []),
    )


def label_dict(series: TimeSeries) -> dict[str, str]:
    """Return the labels of a series as a dict (order is not significant)."""
    return {label.name: label.value for label in series.labels}


def sample_pairs(series: TimeSeries) -> list[tuple[int, float]]:
    return [(sample.timestamp, sample.value) for sample in series.samples]


def eq(name: str, value: str) -> LabelMatcher:
    return LabelMatcher(name=name, type=MatchType.EQ, value=value)


def neq(name: str, value: str) -> LabelMatcher:
    return LabelMatcher(name=name, type=MatchType.NEQ, value=value)


def re_(name: str, value: str) -> LabelMatcher:
    return LabelMatcher(name=name, type=MatchType.RE, value=value)


def nre(name: str, value: str) -> LabelMatcher:
    return LabelMatcher(name=name, type=MatchType.NRE, value=value)
