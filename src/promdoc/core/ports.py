"""Port interface for series document storage.

The translation layer depends only on this protocol, not on a concrete
database driver.
"""

from collections.abc import AsyncIterable, Sequence
from typing import Protocol, runtime_checkable

from promdoc.core.filters import FilterExpr
from promdoc.core.models import Document


@runtime_checkable
class SeriesStoragePort(Protocol):
    """Port for series document storage.

    Adapters implementing this protocol can insert and query series documents.
    Examples: InMemorySeriesStorage, SQLiteSeriesStorage, MongoSeriesStorage.
    """

    async def insert_many(self, documents: Sequence[Document]) -> None:
        """Insert all documents of one write request in a single call."""
        ...

    def find(
        self,
        filter: FilterExpr,
        projection: Sequence[str],
        sort: str | None = None,
    ) -> AsyncIterable[Document]:
        """Find documents matching a filter expression.

        Args:
            filter: Expression every returned document satisfies.
            projection: Top-level fields to return.
            sort: Field to sort ascending by. None leaves store order.

        Returns:
            Async iterable of projected documents.
        """
        ...

    async def ping(self) -> None:
        """Check store liveness. Raises on failure."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
