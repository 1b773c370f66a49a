"""Example FastAPI application serving Prometheus remote storage.

Run with:
    STORAGE_BACKEND=sqlite uvicorn examples.fastapi_example:app --reload

Endpoints:
    /_health      - store liveness
    /api/v1/write - Prometheus remote write
    /api/v1/read  - Prometheus remote read
    /             - store summary

Point Prometheus at it with:
    remote_write:
      - url: http://localhost:8000/api/v1/write
    remote_read:
      - url: http://localhost:8000/api/v1/read
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from promdoc.adapters.frameworks.fastapi import create_remote_storage_router
from promdoc.adapters.storage.mongodb import MongoSeriesStorage
from promdoc.app import create_storage
from promdoc.config import Settings
from promdoc.core.logs import configure_logging
from promdoc.core.service import RemoteStorageService

settings = Settings.from_env()
configure_logging(settings.log_level)

storage = create_storage(settings)
service = RemoteStorageService(storage, keep_empty_series=settings.keep_empty_series)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if isinstance(storage, MongoSeriesStorage):
        await storage.ensure_indexes()
    yield
    await storage.close()


app = FastAPI(title="Remote Storage Example", lifespan=lifespan)

# Mount remote storage endpoints
app.include_router(create_remote_storage_router(service, settings.auth))


@app.get("/")
async def root() -> dict[str, object]:
    """Describe the configured store."""
    return {
        "message": "Prometheus remote storage. POST to /api/v1/write and /api/v1/read.",
        "settings": settings.to_dict(),
    }
