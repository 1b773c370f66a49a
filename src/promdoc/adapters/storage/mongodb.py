"""MongoDB storage adapter for series documents.

Uses the asyncio client shipped with pymongo. Filter expressions are
rendered into MongoDB query documents.
"""

import logging
from collections.abc import AsyncIterable, Sequence
from typing import Any, assert_never

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection

from promdoc.core.filters import (
    And,
    Equal,
    FilterExpr,
    NotEqual,
    Range,
    RegexExclude,
    RegexMatch,
)
from promdoc.core.models import MIN_TIMESTAMP_FIELD, NAME_FIELD, Document

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "prometheus"
DEFAULT_COLLECTION = "prometheus"

# (index name, indexed field)
_INDEXES = (
    ("name", NAME_FIELD),
    ("samplesMinDateTime", MIN_TIMESTAMP_FIELD),
)


def full_match_regex(pattern: str) -> str:
    """Anchor a pattern to the whole subject for MongoDB's PCRE engine.

    A trailing `$` also matches before a final newline, so the end of the
    subject is asserted with `\\z` instead.
    """
    return rf"\A(?:{pattern})\z"


def render_mongo(expr: FilterExpr) -> dict[str, Any]:
    """Render a filter expression as a MongoDB query document."""
    if isinstance(expr, And):
        if not expr.clauses:
            return {}
        return {"$and": [render_mongo(clause) for clause in expr.clauses]}
    if isinstance(expr, Equal):
        return {expr.field: expr.value}
    if isinstance(expr, NotEqual):
        return {expr.field: {"$exists": True, "$ne": expr.value}}
    if isinstance(expr, RegexMatch):
        return {expr.field: {"$regex": full_match_regex(expr.pattern)}}
    if isinstance(expr, RegexExclude):
        return {expr.field: {"$not": {"$regex": full_match_regex(expr.pattern)}}}
    if isinstance(expr, Range):
        bounds: dict[str, Any] = {"$exists": True}
        if expr.gte is not None:
            bounds["$gte"] = expr.gte
        if expr.lte is not None:
            bounds["$lte"] = expr.lte
        return {expr.field: bounds}
    assert_never(expr)


def render_projection(projection: Sequence[str]) -> dict[str, int]:
    """Render a field list as an inclusion projection without _id."""
    return {"_id": 0, **{field: 1 for field in projection}}


class MongoSeriesStorage:
    """MongoDB implementation of SeriesStoragePort.

    Each write batch is a single ordered insert_many. MongoDB does not make
    that call atomic: on failure the error is raised, but documents before
    the failing one may already be stored.
    """

    def __init__(
        self,
        collection: AsyncCollection,
        client: AsyncMongoClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            collection: Collection holding the series documents.
            client: Owning client, closed by close(). Leave None when the
                client lifecycle is managed elsewhere.
        """
        self._collection = collection
        self._client = client

    @classmethod
    def from_uri(
        cls,
        uri: str,
        database: str = DEFAULT_DATABASE,
        collection: str = DEFAULT_COLLECTION,
        **client_kwargs: Any,
    ) -> "MongoSeriesStorage":
        """Create an adapter owning a new client.

        A database named in the URI takes precedence over `database`.
        """
        client: AsyncMongoClient = AsyncMongoClient(uri, **client_kwargs)
        db = client.get_default_database(default=database)
        logger.info("Using MongoDB collection %s.%s", db.name, collection)
        return cls(db[collection], client=client)

    async def ensure_indexes(self) -> None:
        """Create the metric-name and min-timestamp indexes if missing."""
        for index_name, field in _INDEXES:
            await self._collection.create_index([(field, ASCENDING)], name=index_name)

    async def insert_many(self, documents: Sequence[Document]) -> None:
        """Insert a batch of documents with one ordered insert_many."""
        await self._collection.insert_many(list(documents), ordered=True)

    async def find(
        self,
        filter: FilterExpr,
        projection: Sequence[str],
        sort: str | None = None,
    ) -> AsyncIterable[Document]:
        """Yield documents matching filter."""
        kwargs: dict[str, Any] = {}
        if sort is not None:
            kwargs["sort"] = [(sort, ASCENDING)]
        cursor = self._collection.find(
            render_mongo(filter), render_projection(projection), **kwargs
        )
        async for document in cursor:
            yield document

    async def ping(self) -> None:
        """Run the ping command. Raises if the server is unreachable."""
        await self._collection.database.command("ping")

    async def close(self) -> None:
        """Close the owned client, if any."""
        if self._client is not None:
            await self._client.close()
            self._client = None
