"""SQLite storage adapter for series documents."""

import asyncio
import json
import struct
from collections.abc import AsyncIterable, Sequence
from typing import Any, assert_never

import aiosqlite

from promdoc.core.filters import (
    And,
    Equal,
    FilterExpr,
    NotEqual,
    Range,
    RegexExclude,
    RegexMatch,
    full_match,
)
from promdoc.adapters.storage.sqlite_base import AsyncConnectionManager
from promdoc.core.models import (
    LABELS_FIELD,
    MAX_TIMESTAMP_FIELD,
    MIN_TIMESTAMP_FIELD,
    NAME_FIELD,
    SAMPLES_FIELD,
    TIMESTAMP_KEY,
    VALUE_KEY,
    Document,
)

_SERIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS series (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    min_timestamp INTEGER,
    max_timestamp INTEGER,
    labels TEXT NOT NULL DEFAULT '{}',
    samples TEXT NOT NULL DEFAULT '[]'
);
CREATE INDEX IF NOT EXISTS idx_series_name ON series(name);
CREATE INDEX IF NOT EXISTS idx_series_min_timestamp ON series(min_timestamp);
"""

_INSERT_SERIES = """
INSERT INTO series (name, min_timestamp, max_timestamp, labels, samples)
VALUES (?, ?, ?, ?, ?)
"""

_SELECT_SERIES = """
SELECT name, min_timestamp, max_timestamp, labels, samples FROM series
WHERE {where}
ORDER BY {order}
"""

_COUNT_SERIES = "SELECT COUNT(*) FROM series"

_CLEAR_SERIES = "DELETE FROM series"

# Promoted document fields that live in their own indexed columns.
_COLUMNS = {
    NAME_FIELD: "name",
    MIN_TIMESTAMP_FIELD: "min_timestamp",
    MAX_TIMESTAMP_FIELD: "max_timestamp",
}


def _regexp(pattern: str | None, value: Any) -> int:
    """Implementation of the SQL `value REGEXP pattern` operator."""
    if pattern is None or value is None:
        return 0
    return int(full_match(pattern, str(value)))


async def _register_functions(db: aiosqlite.Connection) -> None:
    await db.create_function("regexp", 2, _regexp, deterministic=True)


def _field_sql(field: str) -> tuple[str, list[Any]]:
    """Return the SQL expression and parameters reading a document field."""
    if field in _COLUMNS:
        return _COLUMNS[field], []
    prefix, _, label = field.partition(".")
    if prefix != LABELS_FIELD or not label:
        raise ValueError(f"field {field!r} cannot be filtered in SQLite storage")
    return "json_extract(labels, ?)", [f'$."{label}"']


def render_sql(expr: FilterExpr) -> tuple[str, list[Any]]:
    """Render a filter expression as a SQL condition with its parameters."""
    if isinstance(expr, And):
        if not expr.clauses:
            return "1", []
        parts: list[str] = []
        params: list[Any] = []
        for clause in expr.clauses:
            sql, clause_params = render_sql(clause)
            parts.append(sql)
            params.extend(clause_params)
        return "(" + " AND ".join(parts) + ")", params

    column, column_params = _field_sql(expr.field)
    if isinstance(expr, Equal):
        return f"{column} = ?", [*column_params, expr.value]
    if isinstance(expr, NotEqual):
        return (
            f"({column} IS NOT NULL AND {column} != ?)",
            [*column_params, *column_params, expr.value],
        )
    if isinstance(expr, RegexMatch):
        return f"{column} REGEXP ?", [*column_params, expr.pattern]
    if isinstance(expr, RegexExclude):
        return f"NOT ({column} REGEXP ?)", [*column_params, expr.pattern]
    if isinstance(expr, Range):
        bounds: list[str] = [f"{column} IS NOT NULL"]
        params = list(column_params)
        if expr.gte is not None:
            bounds.append(f"{column} >= ?")
            params.extend([*column_params, expr.gte])
        if expr.lte is not None:
            bounds.append(f"{column} <= ?")
            params.extend([*column_params, expr.lte])
        return "(" + " AND ".join(bounds) + ")", params
    assert_never(expr)


def _value_bits(value: float) -> int:
    return struct.unpack("<q", struct.pack("<d", value))[0]


def _bits_value(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<q", bits))[0]


def _dump_samples(samples: list[dict[str, Any]]) -> str:
    """Serialize samples as [timestamp, value bits] pairs.

    JSON has no NaN payloads, so values travel as their IEEE-754 bit
    pattern to keep stale markers intact.
    """
    return json.dumps(
        [[raw[TIMESTAMP_KEY], _value_bits(raw[VALUE_KEY])] for raw in samples]
    )


def _load_samples(data: str) -> list[dict[str, Any]]:
    return [
        {TIMESTAMP_KEY: ts, VALUE_KEY: _bits_value(bits)}
        for ts, bits in json.loads(data)
    ]


def _to_row(document: Document) -> tuple[Any, ...]:
    return (
        document.get(NAME_FIELD),
        document.get(MIN_TIMESTAMP_FIELD),
        document.get(MAX_TIMESTAMP_FIELD),
        json.dumps(document.get(LABELS_FIELD, {})),
        _dump_samples(document.get(SAMPLES_FIELD, [])),
    )


def _from_row(row: aiosqlite.Row | tuple[Any, ...]) -> Document:
    document: Document = {
        LABELS_FIELD: json.loads(row[3]),
        SAMPLES_FIELD: _load_samples(row[4]),
    }
    for field, value in zip(_COLUMNS, row[:3], strict=True):
        if value is not None:
            document[field] = value
    return document


# @tra: Adapter.SQLiteStorage.ImplementsSeriesStoragePort
# @tra: Adapter.SQLiteStorage.AtomicBatch
class SQLiteSeriesStorage:
    """SQLite implementation of SeriesStoragePort.

    Stores the label mapping and sample list of each series document as
    JSON columns next to its promoted metric name and min/max timestamp
    columns. Filter expressions are rendered to SQL; label fields are read
    with json_extract and regex matchers use a REGEXP function registered
    on every connection.

    A batch is inserted in one transaction, so it is either fully visible
    or not at all. For :memory: databases a persistent connection is kept
    since in-memory databases are connection-scoped in SQLite.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._manager = AsyncConnectionManager(
            db_path, _SERIES_SCHEMA, setup=_register_functions
        )
        self._write_lock: asyncio.Lock | None = None

    def _get_write_lock(self) -> asyncio.Lock:
        """Get or create the write lock (lazy to avoid event loop issues)."""
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        return self._write_lock

    async def insert_many(self, documents: Sequence[Document]) -> None:
        """Insert a batch of documents in a single transaction."""
        rows = [_to_row(document) for document in documents]
        async with self._get_write_lock(), self._manager.connection() as db:
            try:
                await db.executemany(_INSERT_SERIES, rows)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def find(
        self,
        filter: FilterExpr,
        projection: Sequence[str],
        sort: str | None = None,
    ) -> AsyncIterable[Document]:
        """Yield projected documents matching filter."""
        where, params = render_sql(filter)
        order = "id ASC"
        if sort is not None:
            sort_sql, sort_params = _field_sql(sort)
            order = f"{sort_sql} ASC, id ASC"
            params = [*params, *sort_params]
        query = _SELECT_SERIES.format(where=where, order=order)
        async with self._manager.connection() as db:
            async with db.execute(query, params) as cursor:
                async for row in cursor:
                    document = _from_row(row)
                    yield {key: document[key] for key in projection if key in document}

    async def count(self) -> int:
        """Return total number of series documents in storage."""
        async with self._manager.connection() as db:
            async with db.execute(_COUNT_SERIES) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def clear(self) -> None:
        """Remove all series documents."""
        async with self._get_write_lock(), self._manager.connection() as db:
            await db.execute(_CLEAR_SERIES)
            await db.commit()

    async def ping(self) -> None:
        """Run a trivial query. Raises if the database is unusable."""
        async with self._manager.connection() as db:
            async with db.execute("SELECT 1") as cursor:
                await cursor.fetchone()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
