"""Core domain models for remote-storage data."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

# Reserved label carrying the metric identity.
METRIC_NAME_LABEL = "__name__"

# Series document field names.
LABELS_FIELD = "labels"
SAMPLES_FIELD = "samples"
NAME_FIELD = "name"
MIN_TIMESTAMP_FIELD = "samplesMinDateTime"
MAX_TIMESTAMP_FIELD = "samplesMaxDateTime"
TIMESTAMP_KEY = "timestamp"
VALUE_KEY = "value"

# A series document in its store-native form.
Document = dict[str, Any]


@dataclass(frozen=True)
class Label:
    """A single name/value pair of a label set."""

    name: str
    value: str


@dataclass(frozen=True)
class Sample:
    """A single measurement of a time series.

    Attributes:
        timestamp: Milliseconds since the Unix epoch.
        value: The sample value (64-bit float, NaN allowed for stale markers).
    """

    timestamp: int
    value: float


@dataclass(frozen=True)
class TimeSeries:
    """A labeled sequence of samples in wire form.

    Attributes:
        labels: Label list as received; names are unique within one series.
        samples: Samples in the order they were received.
    """

    labels: tuple[Label, ...] = ()
    samples: tuple[Sample, ...] = ()

    def label_map(self) -> dict[str, str]:
        """Return the labels as a mapping; later duplicates win."""
        return {label.name: label.value for label in self.labels}


class MatchType(IntEnum):
    """Label matcher kinds, numbered as in the remote protocol."""

    EQ = 0
    NEQ = 1
    RE = 2
    NRE = 3


@dataclass(frozen=True)
class LabelMatcher:
    """A predicate over one label value.

    Attributes:
        name: Label name the predicate applies to.
        type: Match kind. Values outside MatchType are kept as raw ints so
            the compiler can reject them explicitly.
        value: Literal value or regular expression.
    """

    name: str
    type: MatchType | int
    value: str


@dataclass(frozen=True)
class Query:
    """A time window plus a conjunction of label matchers.

    Attributes:
        start_timestamp_ms: Inclusive lower bound in milliseconds.
        end_timestamp_ms: Inclusive upper bound in milliseconds.
        matchers: Matchers that must all hold.
    """

    start_timestamp_ms: int
    end_timestamp_ms: int
    matchers: tuple[LabelMatcher, ...] = ()


@dataclass(frozen=True)
class QueryResult:
    """Series answering one query."""

    timeseries: tuple[TimeSeries, ...] = ()


@dataclass(frozen=True)
class SeriesDocument:
    """The storable unit: one label set and all samples of one write.

    The metric name and the min/max timestamps are derived from labels and
    samples on construction and never set independently.

    Attributes:
        labels: Authoritative label mapping.
        samples: Samples in received order.
    """

    labels: dict[str, str] = field(default_factory=dict)
    samples: tuple[Sample, ...] = ()

    @property
    def metric_name(self) -> str | None:
        return self.labels.get(METRIC_NAME_LABEL)

    @property
    def min_timestamp(self) -> int | None:
        if not self.samples:
            return None
        return min(sample.timestamp for sample in self.samples)

    @property
    def max_timestamp(self) -> int | None:
        if not self.samples:
            return None
        return max(sample.timestamp for sample in self.samples)

    def to_document(self) -> Document:
        """Render the store-native document with its derived fields."""
        document: Document = {
            LABELS_FIELD: dict(self.labels),
            SAMPLES_FIELD: [
                {TIMESTAMP_KEY: sample.timestamp, VALUE_KEY: sample.value}
                for sample in self.samples
            ],
        }
        if self.metric_name is not None:
            document[NAME_FIELD] = self.metric_name
        if self.samples:
            document[MIN_TIMESTAMP_FIELD] = self.min_timestamp
            document[MAX_TIMESTAMP_FIELD] = self.max_timestamp
        return document
