"""Storage adapters implementing SeriesStoragePort."""

from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.adapters.storage.mongodb import MongoSeriesStorage
from promdoc.adapters.storage.sqlite import SQLiteSeriesStorage

__all__ = [
    "InMemorySeriesStorage",
    "MongoSeriesStorage",
    "SQLiteSeriesStorage",
]
