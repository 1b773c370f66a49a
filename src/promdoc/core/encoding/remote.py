"""Codec for remote-write and remote-read payloads.

Payloads are protobuf messages compressed with the snappy block format.
Decoders return core models; encoders accept them.
"""

from collections.abc import Iterable, Sequence
from typing import Any

import cramjam
from google.protobuf.message import DecodeError as ProtobufDecodeError

from promdoc.core.encoding import prompb
from promdoc.core.errors import DecodeError
from promdoc.core.models import (
    Label,
    LabelMatcher,
    MatchType,
    Query,
    QueryResult,
    Sample,
    TimeSeries,
)

CONTENT_TYPE = "application/x-protobuf"
CONTENT_ENCODING = "snappy"


def _decompress(body: bytes) -> bytes:
    try:
        return bytes(cramjam.snappy.decompress_raw(body))
    except cramjam.DecompressionError as e:
        raise DecodeError(f"invalid snappy payload: {e}") from e


def _compress(payload: bytes) -> bytes:
    return bytes(cramjam.snappy.compress_raw(payload))


def _parse(message: Any, body: bytes) -> Any:
    try:
        message.ParseFromString(_decompress(body))
    except ProtobufDecodeError as e:
        raise DecodeError(f"invalid protobuf payload: {e}") from e
    return message


def _series_from_message(message: Any) -> TimeSeries:
    return TimeSeries(
        labels=tuple(Label(name=lbl.name, value=lbl.value) for lbl in message.labels),
        samples=tuple(
            Sample(timestamp=s.timestamp, value=s.value) for s in message.samples
        ),
    )


def _series_to_message(series: TimeSeries, message: Any) -> None:
    for label in series.labels:
        message.labels.add(name=label.name, value=label.value)
    for sample in series.samples:
        message.samples.add(timestamp=sample.timestamp, value=sample.value)


def _match_type(raw: int) -> MatchType | int:
    try:
        return MatchType(raw)
    except ValueError:
        return raw


def decode_write_request(body: bytes) -> list[TimeSeries]:
    """Decode a compressed remote-write request into time series.

    Raises:
        DecodeError: Bad compression or bad serialization.
    """
    request = _parse(prompb.WriteRequest(), body)
    return [_series_from_message(ts) for ts in request.timeseries]


def encode_write_request(timeseries: Iterable[TimeSeries]) -> bytes:
    """Encode time series as a compressed remote-write request."""
    request = prompb.WriteRequest()
    for series in timeseries:
        _series_to_message(series, request.timeseries.add())
    return _compress(request.SerializeToString())


def decode_read_request(body: bytes) -> list[Query]:
    """Decode a compressed remote-read request into queries.

    Matcher types unknown to MatchType are passed through as ints.

    Raises:
        DecodeError: Bad compression or bad serialization.
    """
    request = _parse(prompb.ReadRequest(), body)
    return [
        Query(
            start_timestamp_ms=q.start_timestamp_ms,
            end_timestamp_ms=q.end_timestamp_ms,
            matchers=tuple(
                LabelMatcher(name=m.name, type=_match_type(m.type), value=m.value)
                for m in q.matchers
            ),
        )
        for q in request.queries
    ]


def encode_read_request(queries: Iterable[Query]) -> bytes:
    """Encode queries as a compressed remote-read request."""
    request = prompb.ReadRequest()
    for query in queries:
        message = request.queries.add(
            start_timestamp_ms=query.start_timestamp_ms,
            end_timestamp_ms=query.end_timestamp_ms,
        )
        for matcher in query.matchers:
            message.matchers.add(
                name=matcher.name, type=int(matcher.type), value=matcher.value
            )
    return _compress(request.SerializeToString())


def encode_read_response(results: Sequence[QueryResult]) -> bytes:
    """Encode query results as a compressed remote-read response."""
    response = prompb.ReadResponse()
    for result in results:
        message = response.results.add()
        for series in result.timeseries:
            _series_to_message(series, message.timeseries.add())
    return _compress(response.SerializeToString())


def decode_read_response(body: bytes) -> list[QueryResult]:
    """Decode a compressed remote-read response.

    Raises:
        DecodeError: Bad compression or bad serialization.
    """
    response = _parse(prompb.ReadResponse(), body)
    return [
        QueryResult(
            timeseries=tuple(_series_from_message(ts) for ts in result.timeseries)
        )
        for result in response.results
    ]
