"""Tests for settings-driven app and storage construction."""

import pytest

from promdoc import __main__ as entry
from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.adapters.storage.mongodb import MongoSeriesStorage
from promdoc.adapters.storage.sqlite import SQLiteSeriesStorage
from promdoc.app import create_app, create_storage
from promdoc.config import Settings
from promdoc.core.encoding.remote import encode_write_request
from tests.helpers import make_series

pytestmark = [pytest.mark.tier(2)]


class TestCreateStorage:
    """Tests for create_storage()."""

    @pytest.mark.tra("App.Storage.Memory")
    def test_memory_backend(self) -> None:
        storage = create_storage(Settings(storage_backend="memory"))

        assert isinstance(storage, InMemorySeriesStorage)

    @pytest.mark.tra("App.Storage.SQLite")
    def test_sqlite_backend(self, series_db_path: str) -> None:
        settings = Settings(storage_backend="sqlite", sqlite_path=series_db_path)

        assert isinstance(create_storage(settings), SQLiteSeriesStorage)

    @pytest.mark.tra("App.Storage.Mongo")
    async def test_mongodb_backend_uses_uri_database(self) -> None:
        settings = Settings(mongo_uri="mongodb://localhost:27017/metrics")

        storage = create_storage(settings)

        assert isinstance(storage, MongoSeriesStorage)
        await storage.close()


class TestCreateApp:
    """Tests for create_app()."""

    @pytest.mark.tra("App.Create.Auth")
    async def test_app_applies_configured_token(self, asgi_test_client) -> None:
        app = create_app(Settings(storage_backend="memory", auth_token="k"))
        body = encode_write_request([make_series({"job": "x"}, [(1, 1.0)])])

        async with asgi_test_client(app) as client:
            denied = await client.post("/api/v1/write", content=body)
            allowed = await client.post(
                "/api/v1/write", content=body, headers={"Authorization": "k"}
            )

        assert denied.status_code == 401
        assert allowed.status_code == 204

    @pytest.mark.tra("App.Create.Storage")
    async def test_explicit_storage_is_used(self, asgi_test_client) -> None:
        storage = InMemorySeriesStorage()
        app = create_app(Settings(storage_backend="memory"), storage=storage)
        body = encode_write_request([make_series({"job": "x"}, [(1, 1.0)])])

        async with asgi_test_client(app) as client:
            await client.post("/api/v1/write", content=body)

        assert await storage.count() == 1


class TestMain:
    """Tests for the command-line entry point."""

    @pytest.mark.tra("App.Main.BadConfig")
    def test_bad_configuration_exits_with_2(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "cassandra")

        assert entry.main() == 2
        assert "STORAGE_BACKEND" in capsys.readouterr().err

    @pytest.mark.tra("App.Main.Run")
    def test_runs_uvicorn_with_settings(self, monkeypatch) -> None:
        calls: list[dict] = []
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LISTEN_PORT", "9201")
        monkeypatch.setattr(
            entry.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs)
        )

        assert entry.main() == 0
        assert calls[0]["port"] == 9201
        assert calls[0]["access_log"] is False

    @pytest.mark.tra("App.Main.BadConfig")
    def test_bad_log_level_exits_with_2(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        assert entry.main() == 2
        assert "LOG_LEVEL" in capsys.readouterr().err
