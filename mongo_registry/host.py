"""
Plugin lifecycle for FastAPI applications.

A PluginHost belongs to one application. It allows each plugin name to be
registered once and runs shutdown hooks in reverse registration order.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Protocol

from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict

from mongo_registry.core.errors import DuplicateRegistrationError

logger = logging.getLogger(__name__)


class Plugin(Protocol):
    name: str

    async def register(self, app: FastAPI, options: Any) -> None:
        ...

    async def shutdown(self, app: FastAPI) -> None:
        ...


class PluginRegistration(BaseModel):
    """A plugin paired with its registration options."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    plugin: Any
    options: Any = None


class PluginHost:
    """Registers plugins on one FastAPI application."""

    def __init__(self, app: FastAPI):
        self.app = app
        self._plugins: dict[str, Plugin] = {}

    @property
    def registered(self) -> list[str]:
        return list(self._plugins)

    async def register(self, *registrations: PluginRegistration) -> None:
        """
        Register plugins in order.

        Names are checked for the whole batch before any plugin runs.

        Raises:
            DuplicateRegistrationError: a name is already registered or repeated
        """
        names: list[str] = []
        for registration in registrations:
            name = registration.plugin.name
            if name in self._plugins or name in names:
                raise DuplicateRegistrationError(f"Plugin {name} already registered")
            names.append(name)

        for registration in registrations:
            plugin = registration.plugin
            self._plugins[plugin.name] = plugin
            try:
                await plugin.register(self.app, registration.options)
            except BaseException:
                del self._plugins[plugin.name]
                raise
            logger.info(f"Registered plugin {plugin.name}")

    async def shutdown(self) -> None:
        """Run shutdown hooks newest first; failures are logged."""
        for name, plugin in reversed(list(self._plugins.items())):
            try:
                await plugin.shutdown(self.app)
            except Exception as e:
                logger.error(f"Plugin {name} shutdown failed: {e}")
        self._plugins.clear()


def get_plugin_host(app: FastAPI) -> PluginHost:
    """Get or create the plugin host stored on the app."""
    host = getattr(app.state, "plugin_host", None)
    if host is None:
        host = PluginHost(app)
        app.state.plugin_host = host
    return host


def plugin_lifespan(*registrations: PluginRegistration):
    """
    Build a FastAPI lifespan that registers plugins on startup.

    A registration failure stops startup; plugins already registered are
    shut down before the error propagates.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        host = get_plugin_host(app)
        try:
            await host.register(*registrations)
            yield
        finally:
            await host.shutdown()

    return lifespan
