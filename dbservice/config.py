import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Configuration for the storage engine."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="DATABASE_", extra="ignore"
    )

    engine: Literal["memory", "sqlite"] = Field("sqlite", description="Storage engine serving requests")
    path: str = Field("dbservice.db", description="Path to the SQLite database file")
    rehearsal: bool = Field(False, description="Record SQL statements without executing them")
    strict_inserts: bool = Field(
        False, description="Reject inserts over an existing key in the in-memory engine"
    )
    scope_updates_by_key: bool = Field(
        False, description="Restrict UPDATE statements to the row addressed by the key columns"
    )


class ServerSettings(BaseSettings):
    """Configuration for the HTTP server."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="SERVER_", extra="ignore"
    )

    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(3000, description="Port to listen on")


class AppSettings(BaseSettings):
    """General application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    debug: bool = Field(False, description="Enable debug mode for development")
    log_level: str = Field("INFO", description="Logging level")

    db: DatabaseSettings = DatabaseSettings()
    server: ServerSettings = ServerSettings()

    @property
    def log_level_value(self) -> int:
        """Return the numeric value of the log level."""
        return logging.getLevelName(self.log_level.upper())


@lru_cache
def get_settings() -> AppSettings:
    """
    Get application settings.
    If the TEST_MODE environment variable is set, it returns a configuration
    backed by the in-memory engine, otherwise loads the configuration from .env.
    """
    if os.getenv("TEST_MODE"):
        return AppSettings(
            debug=True,
            log_level="DEBUG",
            db=DatabaseSettings(engine="memory", path=":memory:"),
            server=ServerSettings(host="127.0.0.1", port=3000),
        )
    return AppSettings()
