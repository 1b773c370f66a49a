"""In-memory storage adapter for series documents."""

import copy
from collections.abc import AsyncIterable, Sequence

from promdoc.core.filters import FilterExpr, evaluate
from promdoc.core.models import Document


def _project(document: Document, projection: Sequence[str]) -> Document:
    return {key: document[key] for key in projection if key in document}


class InMemorySeriesStorage:
    """In-memory implementation of SeriesStoragePort.

    Stores documents in a list and evaluates filter expressions directly.
    Suitable for testing and for short-lived setups where persistence is
    not required. Inserts are all-or-nothing.
    """

    def __init__(self) -> None:
        self._documents: list[Document] = []

    async def insert_many(self, documents: Sequence[Document]) -> None:
        """Append all documents of a batch."""
        batch = [copy.deepcopy(document) for document in documents]
        self._documents.extend(batch)

    async def find(
        self,
        filter: FilterExpr,
        projection: Sequence[str],
        sort: str | None = None,
    ) -> AsyncIterable[Document]:
        """Yield projected copies of the documents matching filter."""
        matched = [doc for doc in self._documents if evaluate(filter, doc)]
        if sort is not None:
            # Documents without the sort field go first, as in MongoDB.
            matched.sort(key=lambda doc: (sort in doc, doc.get(sort, 0)))
        for document in matched:
            yield copy.deepcopy(_project(document, projection))

    async def count(self) -> int:
        """Return the number of stored documents."""
        return len(self._documents)

    async def clear(self) -> None:
        """Remove all documents."""
        self._documents.clear()

    async def ping(self) -> None:
        """Always healthy."""

    async def close(self) -> None:
        """Nothing to release."""
