"""Factories wiring settings, storage, service and the ASGI app together."""

import logging

from promdoc.adapters.frameworks.asgi import ASGIApp, LifespanHook, create_asgi_app
from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.adapters.storage.mongodb import MongoSeriesStorage
from promdoc.adapters.storage.sqlite import SQLiteSeriesStorage
from promdoc.config import Settings
from promdoc.core.ports import SeriesStoragePort
from promdoc.core.service import RemoteStorageService

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> SeriesStoragePort:
    """Build the storage adapter selected by settings.storage_backend."""
    if settings.storage_backend == "mongodb":
        return MongoSeriesStorage.from_uri(
            settings.mongo_uri,
            database=settings.mongo_database,
            collection=settings.mongo_collection,
        )
    if settings.storage_backend == "sqlite":
        return SQLiteSeriesStorage(settings.sqlite_path)
    return InMemorySeriesStorage()


def create_app(
    settings: Settings | None = None,
    storage: SeriesStoragePort | None = None,
) -> ASGIApp:
    """Create the ASGI application.

    Args:
        settings: Server settings. Defaults to Settings.from_env().
        storage: Storage adapter to use instead of the configured backend.

    Returns:
        ASGI app. MongoDB indexes are created on lifespan startup and the
        storage is closed on shutdown.
    """
    if settings is None:
        settings = Settings.from_env()
    if storage is None:
        storage = create_storage(settings)
    logger.info("Starting with settings %s", settings.to_dict())

    on_startup: list[LifespanHook] = []
    if isinstance(storage, MongoSeriesStorage):
        on_startup.append(storage.ensure_indexes)

    service = RemoteStorageService(
        storage, keep_empty_series=settings.keep_empty_series
    )
    return create_asgi_app(
        service,
        auth=settings.auth,
        on_startup=on_startup,
        on_shutdown=[storage.close],
    )
