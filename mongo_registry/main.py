"""
Mongo Registry - FastAPI application factory

Builds an application whose startup registers the configured MongoDB
connections and schema models, and whose shutdown releases them.

Run with:
    uvicorn mongo_registry.main:create_app --factory
"""
from typing import Optional

from fastapi import FastAPI

from mongo_registry import __version__
from mongo_registry.config import Settings, get_settings
from mongo_registry.core.logging_config import configure_logging
from mongo_registry.host import PluginRegistration, plugin_lifespan
from mongo_registry.plugin import MongoPlugin
from mongo_registry.routers import health


def create_app(
    settings: Optional[Settings] = None,
    plugin: Optional[MongoPlugin] = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        settings: Settings to use (environment by default)
        plugin: Plugin instance to register (built from settings by default)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    plugin = plugin or MongoPlugin.from_settings(settings)
    registration = PluginRegistration(plugin=plugin, options=settings.plugin_options())

    app = FastAPI(
        title="Mongo Registry",
        description="MongoDB connections and schema models registered at startup.",
        version=__version__,
        lifespan=plugin_lifespan(registration),
    )
    app.state.registry_namespace = plugin.namespace

    app.include_router(health.router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Mongo Registry",
            "version": __version__,
            "health": "/health",
        }

    return app
