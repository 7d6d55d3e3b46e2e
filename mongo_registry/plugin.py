"""
MongoDB registry plugin for FastAPI applications.

Registration publishes the registry on ``app.state.<namespace>``:

- one connection: a RegistryEntry with ``connection`` and ``models``
- several connections: a dict of RegistryEntry keyed by connection key

The owning MongoRegistry stays on ``app.state.<namespace>_registry`` until
shutdown.
"""
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from fastapi import FastAPI

from mongo_registry.config import Settings
from mongo_registry.core.errors import DuplicateRegistrationError
from mongo_registry.database.connections import MongoDriver
from mongo_registry.database.registry import MongoRegistry
from mongo_registry.schemas.options import PluginOptions

logger = logging.getLogger(__name__)

PLUGIN_NAME = "mongo-registry"
DEFAULT_NAMESPACE = "mongo"


class MongoPlugin:
    """Connects configured MongoDB targets and exposes their models."""

    def __init__(
        self,
        name: str = PLUGIN_NAME,
        namespace: str = DEFAULT_NAMESPACE,
        *,
        driver: Optional[MongoDriver] = None,
        project_root: Optional[Union[str, Path]] = None,
        default_options: Optional[dict[str, Any]] = None,
        auto_index: bool = True,
    ):
        self.name = name
        self.namespace = namespace
        self.driver = driver
        self.project_root = project_root
        self.default_options = default_options
        self.auto_index = auto_index

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "MongoPlugin":
        return cls(
            namespace=settings.namespace,
            project_root=settings.project_root,
            default_options=settings.default_driver_options(),
            auto_index=settings.auto_index,
            **kwargs,
        )

    @property
    def registry_attribute(self) -> str:
        return f"{self.namespace}_registry"

    def get_registry(self, app: FastAPI) -> Optional[MongoRegistry]:
        return getattr(app.state, self.registry_attribute, None)

    async def register(
        self,
        app: FastAPI,
        options: Union[PluginOptions, Mapping[str, Any]],
    ) -> None:
        """
        Register connections and models on the app.

        Raises:
            DuplicateRegistrationError: the namespace is already taken on this app
            RegistryError: registration failed; nothing is published
        """
        if (
            getattr(app.state, self.namespace, None) is not None
            or self.get_registry(app) is not None
        ):
            raise DuplicateRegistrationError(
                f"namespace '{self.namespace}' is already registered on this application"
            )

        registry = MongoRegistry(
            driver=self.driver,
            project_root=self.project_root,
            default_options=self.default_options,
            auto_index=self.auto_index,
        )
        # Reserve the namespace before any connection work
        setattr(app.state, self.registry_attribute, registry)
        try:
            exposed = await registry.register(options)
        except BaseException:
            delattr(app.state, self.registry_attribute)
            raise

        setattr(app.state, self.namespace, exposed)
        logger.info(f"Plugin {self.name} published registry on app.state.{self.namespace}")

    async def shutdown(self, app: FastAPI) -> None:
        """Close every connection and remove the registry from the app."""
        registry = self.get_registry(app)
        if registry is None:
            return
        await registry.close()
        delattr(app.state, self.registry_attribute)
        if getattr(app.state, self.namespace, None) is not None:
            delattr(app.state, self.namespace)
