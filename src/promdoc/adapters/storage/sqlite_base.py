"""Connection handling shared by the SQLite storage adapter."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import aiosqlite

MEMORY_PATH = ":memory:"

# Awaited on every connection opened, e.g. to register SQL functions.
ConnectionSetup = Callable[[aiosqlite.Connection], Awaitable[None]]


class AsyncConnectionManager:
    """Opens aiosqlite connections with the schema and setup hook applied.

    File databases get a fresh connection per use, closed on exit, and are
    switched to WAL mode when the schema is created. A :memory: database
    only lives as long as its connection, so a single connection is opened
    on first use and shared until close().
    """

    def __init__(
        self,
        db_path: str,
        schema: str,
        setup: ConnectionSetup | None = None,
    ) -> None:
        self._db_path = db_path
        self._schema = schema
        self._setup = setup
        self._is_memory = db_path == MEMORY_PATH
        self._ready = False
        self._ready_lock: asyncio.Lock | None = None
        self._shared: aiosqlite.Connection | None = None

    async def _open(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self._db_path)
        if self._setup is not None:
            await self._setup(db)
        return db

    async def _prepare(self) -> None:
        """Create the schema once per manager (per open :memory: database)."""
        if self._ready:
            return
        # Created lazily so the lock binds to the running loop.
        if self._ready_lock is None:
            self._ready_lock = asyncio.Lock()
        async with self._ready_lock:
            if self._ready:
                return
            if self._is_memory:
                self._shared = await self._open()
                await self._shared.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a ready connection; file connections are closed afterwards."""
        await self._prepare()
        if self._is_memory:
            if self._shared is None:
                raise RuntimeError("in-memory database was closed during use")
            yield self._shared
            return
        db = await self._open()
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close the shared :memory: connection, discarding its data."""
        if self._shared is not None:
            await self._shared.close()
            self._shared = None
            self._ready = False
