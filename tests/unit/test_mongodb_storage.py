"""Tests for the MongoDB storage adapter against a mocked collection."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ASCENDING

from promdoc.adapters.storage.mongodb import (
    MongoSeriesStorage,
    render_mongo,
    render_projection,
)
from promdoc.core.filters import (
    And,
    Equal,
    NotEqual,
    Range,
    RegexExclude,
    RegexMatch,
)
from promdoc.core.models import Query
from promdoc.core.query import compile_query
from tests.helpers import eq, nre

pytestmark = [pytest.mark.tier(1), pytest.mark.storage]


class FakeCursor:
    """Async iterable standing in for a pymongo AsyncCursor."""

    def __init__(self, documents: list[dict]) -> None:
        self._documents = documents

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self._documents:
            yield document


@pytest.fixture
def collection() -> MagicMock:
    collection = MagicMock()
    collection.insert_many = AsyncMock()
    collection.create_index = AsyncMock()
    collection.database.command = AsyncMock(return_value={"ok": 1})
    collection.find.return_value = FakeCursor([{"labels": {"job": "x"}, "samples": []}])
    return collection


class TestRenderMongo:
    """Tests for render_mongo()."""

    @pytest.mark.tra("Adapter.Mongo.Render.Equal")
    def test_equal(self) -> None:
        assert render_mongo(Equal("labels.job", "x")) == {"labels.job": "x"}

    @pytest.mark.tra("Adapter.Mongo.Render.NotEqual")
    def test_not_equal_requires_field(self) -> None:
        assert render_mongo(NotEqual("name", "cpu")) == {
            "name": {"$exists": True, "$ne": "cpu"}
        }

    @pytest.mark.tra("Adapter.Mongo.Render.Regex")
    def test_regexes_are_anchored(self) -> None:
        assert render_mongo(RegexMatch("labels.host", "a|b")) == {
            "labels.host": {"$regex": r"\A(?:a|b)\z"}
        }
        assert render_mongo(RegexExclude("labels.host", "a")) == {
            "labels.host": {"$not": {"$regex": r"\A(?:a)\z"}}
        }

    @pytest.mark.tra("Adapter.Mongo.Render.Regex")
    def test_anchor_excludes_trailing_newline(self) -> None:
        """The end anchor is \\z, which never matches before a final newline."""
        pattern = render_mongo(RegexMatch("labels.host", "a"))["labels.host"]["$regex"]

        assert pattern.startswith(r"\A")
        assert pattern.endswith(r"\z")
        assert "$" not in pattern

    @pytest.mark.tra("Adapter.Mongo.Render.Range")
    def test_range(self) -> None:
        assert render_mongo(Range("samplesMaxDateTime", gte=10)) == {
            "samplesMaxDateTime": {"$exists": True, "$gte": 10}
        }

    @pytest.mark.tra("Adapter.Mongo.Render.EmptyAnd")
    def test_empty_and_matches_all(self) -> None:
        assert render_mongo(And()) == {}

    @pytest.mark.tra("Adapter.Mongo.Render.CompiledQuery")
    def test_compiled_query_keeps_repeated_label_clauses(self) -> None:
        query = Query(100, 200, (eq("__name__", "cpu"), nre("host", "a"), nre("host", "b")))

        rendered = render_mongo(compile_query(query).filter)

        assert rendered == {
            "$and": [
                {
                    "$and": [
                        {"samplesMinDateTime": {"$exists": True, "$lte": 200}},
                        {"samplesMaxDateTime": {"$exists": True, "$gte": 100}},
                    ]
                },
                {"name": "cpu"},
                {"labels.host": {"$not": {"$regex": r"\A(?:a)\z"}}},
                {"labels.host": {"$not": {"$regex": r"\A(?:b)\z"}}},
            ]
        }

    @pytest.mark.tra("Adapter.Mongo.Projection")
    def test_projection_excludes_id(self) -> None:
        assert render_projection(("labels", "samples")) == {
            "_id": 0,
            "labels": 1,
            "samples": 1,
        }


class TestMongoSeriesStorage:
    """Tests for MongoSeriesStorage driver calls."""

    @pytest.mark.tra("Adapter.Mongo.InsertMany")
    async def test_insert_many_is_one_ordered_call(self, collection: MagicMock) -> None:
        storage = MongoSeriesStorage(collection)
        documents = [{"labels": {}}, {"labels": {"a": "b"}}]

        await storage.insert_many(documents)

        collection.insert_many.assert_awaited_once_with(documents, ordered=True)

    @pytest.mark.tra("Adapter.Mongo.Find")
    async def test_find_renders_filter_projection_and_sort(
        self, collection: MagicMock
    ) -> None:
        storage = MongoSeriesStorage(collection)

        found = [
            doc
            async for doc in storage.find(
                Equal("labels.job", "x"), ("labels", "samples"), "samplesMinDateTime"
            )
        ]

        assert found == [{"labels": {"job": "x"}, "samples": []}]
        collection.find.assert_called_once_with(
            {"labels.job": "x"},
            {"_id": 0, "labels": 1, "samples": 1},
            sort=[("samplesMinDateTime", ASCENDING)],
        )

    @pytest.mark.tra("Adapter.Mongo.Find")
    async def test_find_without_sort(self, collection: MagicMock) -> None:
        storage = MongoSeriesStorage(collection)

        _ = [doc async for doc in storage.find(And(), ("labels",))]

        collection.find.assert_called_once_with({}, {"_id": 0, "labels": 1})

    @pytest.mark.tra("Adapter.Mongo.Indexes")
    async def test_ensure_indexes(self, collection: MagicMock) -> None:
        await MongoSeriesStorage(collection).ensure_indexes()

        names = [call.kwargs["name"] for call in collection.create_index.await_args_list]
        assert names == ["name", "samplesMinDateTime"]

    @pytest.mark.tra("Adapter.Mongo.Ping")
    async def test_ping_runs_ping_command(self, collection: MagicMock) -> None:
        await MongoSeriesStorage(collection).ping()

        collection.database.command.assert_awaited_once_with("ping")

    @pytest.mark.tra("Adapter.Mongo.Close")
    async def test_close_closes_owned_client_once(self, collection: MagicMock) -> None:
        client = MagicMock()
        client.close = AsyncMock()
        storage = MongoSeriesStorage(collection, client=client)

        await storage.close()
        await storage.close()

        client.close.assert_awaited_once()
