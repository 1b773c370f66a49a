"""Configuration for the promdoc server.

Loads settings from environment variables and provides typed access to
them. Settings are passed explicitly to the factories; there is no global
instance.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from promdoc.adapters.frameworks.auth import AuthPolicy, auth_from_token
from promdoc.core.errors import ConfigurationError

BACKENDS = ("mongodb", "sqlite", "memory")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"LISTEN_PORT must be an integer, got {raw!r}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"LISTEN_PORT out of range: {port}")
    return port


@dataclass
class Settings:
    """Server settings."""

    # Storage
    storage_backend: str = "mongodb"
    mongo_uri: str = ""
    mongo_database: str = "prometheus"
    mongo_collection: str = "prometheus"
    sqlite_path: str = "promdoc.db"

    # Authentication; empty disables it
    auth_token: str = ""

    # Read behaviour
    keep_empty_series: bool = True

    # Server
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ConfigurationError: A value is malformed or required settings
                are missing.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}
        for key, attr in (
            ("STORAGE_BACKEND", "storage_backend"),
            ("MONGO_URI", "mongo_uri"),
            ("MONGO_DATABASE", "mongo_database"),
            ("MONGO_COLLECTION", "mongo_collection"),
            ("SQLITE_PATH", "sqlite_path"),
            ("AUTH_TOKEN", "auth_token"),
            ("LISTEN_HOST", "listen_host"),
            ("LOG_LEVEL", "log_level"),
        ):
            if key in env:
                kwargs[attr] = env[key]
        if "LISTEN_PORT" in env:
            kwargs["listen_port"] = _parse_port(env["LISTEN_PORT"])
        if "KEEP_EMPTY_SERIES" in env:
            kwargs["keep_empty_series"] = _parse_bool(
                "KEEP_EMPTY_SERIES", env["KEEP_EMPTY_SERIES"]
            )
        return cls(**kwargs)

    def validate(self) -> None:
        """Check settings consistency. Raises ConfigurationError."""
        self.storage_backend = self.storage_backend.strip().lower()
        if self.storage_backend not in BACKENDS:
            raise ConfigurationError(
                f"STORAGE_BACKEND must be one of {', '.join(BACKENDS)}, "
                f"got {self.storage_backend!r}"
            )
        if self.storage_backend == "mongodb" and not self.mongo_uri:
            raise ConfigurationError(
                "MONGO_URI must be set when STORAGE_BACKEND is mongodb"
            )
        level = logging.getLevelNamesMapping().get(self.log_level.strip().upper())
        if not level:
            raise ConfigurationError(
                f"LOG_LEVEL must be a logging level name, got {self.log_level!r}"
            )
        # Canonical name, e.g. WARN -> WARNING, as uvicorn expects.
        self.log_level = logging.getLevelName(level)

    @property
    def auth(self) -> AuthPolicy:
        """Authentication policy; AuthDisabled when no token is configured."""
        return auth_from_token(self.auth_token)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with secrets masked."""
        return {
            "storage_backend": self.storage_backend,
            "mongo_uri": "***" if self.mongo_uri else "",
            "mongo_database": self.mongo_database,
            "mongo_collection": self.mongo_collection,
            "sqlite_path": self.sqlite_path,
            "auth_enabled": bool(self.auth_token),
            "keep_empty_series": self.keep_empty_series,
            "listen_host": self.listen_host,
            "listen_port": self.listen_port,
            "log_level": self.log_level,
        }
