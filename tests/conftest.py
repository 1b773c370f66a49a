"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.core.models import TimeSeries
from promdoc.core.service import RemoteStorageService
from tests.helpers import make_series


@pytest.fixture
def series_factory() -> Callable[..., TimeSeries]:
    """Factory fixture exposing make_series to tests."""
    return make_series


@pytest.fixture
def series_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite series storage tests."""
    return str(tmp_path / "series.db")


# === Storage and service fixtures ===


@pytest.fixture
async def series_storage() -> InMemorySeriesStorage:
    """Fixture providing an empty in-memory series storage."""
    return InMemorySeriesStorage()


@pytest.fixture
async def service(series_storage: InMemorySeriesStorage) -> RemoteStorageService:
    """Fixture providing a service over the in-memory storage."""
    return RemoteStorageService(series_storage)


@pytest.fixture
async def cpu_service(service: RemoteStorageService) -> RemoteStorageService:
    """Service whose storage holds cpu{host="a"} and cpu{host="b"}."""
    await service.write(
        [
            make_series({"__name__": "cpu", "host": "a"}, [(100, 1.0), (200, 2.0)]),
            make_series({"__name__": "cpu", "host": "b"}, [(150, 3.0), (250, 4.0)]),
        ]
    )
    return service


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_scope():
    """Factory fixture for creating ASGI scope dicts."""
    from promdoc.adapters.frameworks.asgi import Scope

    def _scope(
        method: str = "GET",
        path: str = "/test",
        headers: list[tuple[bytes, bytes]] | None = None,
    ) -> Scope:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": headers or [],
        }

    return _scope


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture."""

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(service)
            async with asgi_test_client(app) as client:
                response = await client.post("/api/v1/write", content=body)
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def asgi_client_with_service(service, asgi_test_client):
    """Fixture combining a service and an ASGI test client.

    Returns a tuple of (client, service).
    """
    from promdoc.adapters.frameworks.asgi import create_asgi_app

    app = create_asgi_app(service)
    async with asgi_test_client(app) as client:
        yield client, service
