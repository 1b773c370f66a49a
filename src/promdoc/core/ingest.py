"""Ingest mapper: wire-format time series to storable series documents."""

from collections.abc import Iterable

from promdoc.core.models import Document, SeriesDocument, TimeSeries


def map_timeseries(series: TimeSeries) -> SeriesDocument:
    """Build the series document for one inbound time series.

    Args:
        series: Decoded wire-format series.

    Returns:
        SeriesDocument holding the label mapping and samples in received
        order. Series without samples are mapped too; they simply carry no
        time range.
    """
    return SeriesDocument(labels=series.label_map(), samples=tuple(series.samples))


def map_write_request(timeseries: Iterable[TimeSeries]) -> list[Document]:
    """Map a write batch to store-native documents, one per input series.

    Args:
        timeseries: Decoded series of one remote-write request.

    Returns:
        Documents in input order, ready for a single insert_many call.
    """
    return [map_timeseries(series).to_document() for series in timeseries]
