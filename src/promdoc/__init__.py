"""promdoc: Prometheus remote storage on a document store."""

from promdoc.adapters.frameworks.asgi import AccessLogMiddleware, create_asgi_app
from promdoc.adapters.frameworks.auth import (
    AuthDisabled,
    AuthPolicy,
    BearerTokenAuth,
    auth_from_token,
)
from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.adapters.storage.mongodb import MongoSeriesStorage
from promdoc.adapters.storage.sqlite import SQLiteSeriesStorage
from promdoc.app import create_app, create_storage
from promdoc.config import Settings
from promdoc.core.errors import (
    AuthError,
    ConfigurationError,
    DecodeError,
    InvalidMatcherError,
    PromdocError,
    QueryCompileError,
    StoreError,
    UnsupportedMatcherError,
)
from promdoc.core.ingest import map_timeseries, map_write_request
from promdoc.core.models import (
    Label,
    LabelMatcher,
    MatchType,
    Query,
    QueryResult,
    Sample,
    SeriesDocument,
    TimeSeries,
)
from promdoc.core.ports import SeriesStoragePort
from promdoc.core.query import CompiledQuery, compile_matcher, compile_query
from promdoc.core.reconstruct import reconstruct_result, reconstruct_series
from promdoc.core.service import RemoteStorageService

__all__ = [
    # Models
    "Label",
    "LabelMatcher",
    "MatchType",
    "Query",
    "QueryResult",
    "Sample",
    "SeriesDocument",
    "TimeSeries",
    # Translation layer
    "CompiledQuery",
    "compile_matcher",
    "compile_query",
    "map_timeseries",
    "map_write_request",
    "reconstruct_result",
    "reconstruct_series",
    "RemoteStorageService",
    # Ports and storage
    "SeriesStoragePort",
    "InMemorySeriesStorage",
    "MongoSeriesStorage",
    "SQLiteSeriesStorage",
    # HTTP
    "AccessLogMiddleware",
    "AuthDisabled",
    "AuthPolicy",
    "BearerTokenAuth",
    "auth_from_token",
    "create_asgi_app",
    "create_app",
    "create_storage",
    "Settings",
    # Errors
    "AuthError",
    "ConfigurationError",
    "DecodeError",
    "InvalidMatcherError",
    "PromdocError",
    "QueryCompileError",
    "StoreError",
    "UnsupportedMatcherError",
]
