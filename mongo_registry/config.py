"""
Registry configuration loaded from environment variables.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mongo_registry.schemas.options import ConnectionDescriptor, PluginOptions


class Settings(BaseSettings):
    """Registry settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB
    mongo_uri: str = "mongodb://mongodb:27017/app"
    mongo_alias: Optional[str] = None
    mongo_connections: Optional[list[ConnectionDescriptor]] = None

    # Schema discovery
    schema_patterns: list[str] = Field(default_factory=list)
    project_root: Path = Field(default_factory=Path.cwd)

    # Registry
    namespace: str = "mongo"
    server_selection_timeout_ms: Optional[int] = None
    auto_index: bool = True

    # Logging
    log_level: str = "INFO"

    def plugin_options(self) -> PluginOptions:
        """Build registration options; a connection list wins over the single URI."""
        if self.mongo_connections:
            return PluginOptions(connections=self.mongo_connections)
        return PluginOptions(
            connection=ConnectionDescriptor(
                alias=self.mongo_alias,
                uri=self.mongo_uri,
                schema_patterns=self.schema_patterns,
            )
        )

    def default_driver_options(self) -> dict:
        """Driver options injected under every caller's own options."""
        defaults = {}
        if self.server_selection_timeout_ms is not None:
            defaults["serverSelectionTimeoutMS"] = self.server_selection_timeout_ms
        return defaults


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
