"""Remote-storage service tying mapper, compiler and reconstructor to a store."""

import asyncio
import logging
from collections.abc import Sequence

from promdoc.core.errors import PromdocError, StoreError
from promdoc.core.ingest import map_write_request
from promdoc.core.models import Query, QueryResult, TimeSeries
from promdoc.core.ports import SeriesStoragePort
from promdoc.core.query import compile_query
from promdoc.core.reconstruct import reconstruct_result

logger = logging.getLogger(__name__)


class RemoteStorageService:
    """Handles decoded remote-write batches and remote-read query sets.

    Holds no per-request state; one instance is shared by all requests and
    the storage adapter is the only shared resource.
    """

    def __init__(
        self,
        storage: SeriesStoragePort,
        keep_empty_series: bool = True,
    ) -> None:
        """Initialize the service.

        Args:
            storage: Storage adapter implementing SeriesStoragePort.
            keep_empty_series: Return series with no sample inside the query
                window as empty series instead of dropping them.
        """
        self.storage = storage
        self.keep_empty_series = keep_empty_series

    async def write(self, timeseries: Sequence[TimeSeries]) -> int:
        """Persist one remote-write batch.

        Returns:
            Number of documents written.

        Raises:
            StoreError: The insert failed. No partial success is reported.
        """
        documents = map_write_request(timeseries)
        if not documents:
            return 0
        try:
            await self.storage.insert_many(documents)
        except PromdocError:
            raise
        except Exception as e:
            raise StoreError(f"insert failed: {e}") from e
        logger.debug("Wrote %d series documents", len(documents))
        return len(documents)

    async def query(self, query: Query) -> QueryResult:
        """Answer a single query.

        Raises:
            QueryCompileError: The query holds an unusable matcher.
            StoreError: The store read failed.
        """
        compiled = compile_query(query)
        try:
            documents = [
                document
                async for document in self.storage.find(
                    compiled.filter, compiled.projection, compiled.sort
                )
            ]
        except PromdocError:
            raise
        except Exception as e:
            raise StoreError(f"find failed: {e}") from e
        return reconstruct_result(
            documents,
            compiled.start_timestamp_ms,
            compiled.end_timestamp_ms,
            keep_empty=self.keep_empty_series,
        )

    async def read(self, queries: Sequence[Query]) -> list[QueryResult]:
        """Answer a remote-read query set, one result per query in order.

        Queries run concurrently. The first failure cancels the queries
        still running and is raised as is.
        """
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self.query(query)) for query in queries]
        except ExceptionGroup as e:
            raise e.exceptions[0] from None
        return [task.result() for task in tasks]
