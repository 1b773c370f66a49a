"""Tests that storage adapters satisfy the storage port."""

from unittest.mock import MagicMock

import pytest

from promdoc.adapters.storage import (
    InMemorySeriesStorage,
    MongoSeriesStorage,
    SQLiteSeriesStorage,
)
from promdoc.core.ports import SeriesStoragePort

pytestmark = [pytest.mark.tier(0), pytest.mark.storage]


class TestSeriesStoragePort:
    """Runtime protocol checks for each adapter."""

    @pytest.mark.tra("Port.SeriesStorage.InMemory")
    def test_in_memory_storage_implements_port(self) -> None:
        assert isinstance(InMemorySeriesStorage(), SeriesStoragePort)

    @pytest.mark.tra("Port.SeriesStorage.SQLite")
    def test_sqlite_storage_implements_port(self) -> None:
        assert isinstance(SQLiteSeriesStorage(":memory:"), SeriesStoragePort)

    @pytest.mark.tra("Port.SeriesStorage.Mongo")
    def test_mongo_storage_implements_port(self) -> None:
        assert isinstance(MongoSeriesStorage(MagicMock()), SeriesStoragePort)

    @pytest.mark.tra("Port.SeriesStorage.Rejects")
    def test_arbitrary_object_does_not_implement_port(self) -> None:
        assert not isinstance(object(), SeriesStoragePort)
