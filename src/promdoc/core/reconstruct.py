"""Reconstructor: stored series documents back to wire-format series."""

from collections.abc import Iterable

from promdoc.core.models import (
    LABELS_FIELD,
    SAMPLES_FIELD,
    TIMESTAMP_KEY,
    VALUE_KEY,
    Document,
    Label,
    QueryResult,
    Sample,
    TimeSeries,
)


def reconstruct_series(document: Document, start_ms: int, end_ms: int) -> TimeSeries:
    """Rebuild one series, keeping samples with start_ms <= ts <= end_ms.

    The metric name is part of the label mapping, so it comes back as an
    ordinary `__name__` label.
    """
    labels = tuple(
        Label(name=name, value=value)
        for name, value in document.get(LABELS_FIELD, {}).items()
    )
    samples = tuple(
        Sample(timestamp=int(raw[TIMESTAMP_KEY]), value=float(raw[VALUE_KEY]))
        for raw in document.get(SAMPLES_FIELD, [])
        if start_ms <= raw[TIMESTAMP_KEY] <= end_ms
    )
    return TimeSeries(labels=labels, samples=samples)


def reconstruct_result(
    documents: Iterable[Document],
    start_ms: int,
    end_ms: int,
    keep_empty: bool = True,
) -> QueryResult:
    """Rebuild the result of one query from the documents the store returned.

    Args:
        documents: Documents selected by the compiled filter, in store order.
        start_ms: Inclusive window start.
        end_ms: Inclusive window end.
        keep_empty: Keep series whose samples all fall outside the window
            as series with no samples. When False they are dropped.

    Returns:
        QueryResult with one series per kept document, in store order.
    """
    series = (reconstruct_series(doc, start_ms, end_ms) for doc in documents)
    if keep_empty:
        return QueryResult(timeseries=tuple(series))
    return QueryResult(timeseries=tuple(ts for ts in series if ts.samples))
