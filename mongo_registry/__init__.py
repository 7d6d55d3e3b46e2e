"""
MongoDB connection and schema registry for FastAPI applications.
"""
__version__ = "0.1.0"

from mongo_registry.core.errors import (
    RegistryError,
    ConfigurationError,
    MongoConnectionError,
    SchemaResolutionError,
    ModelConflictError,
    ModelCompilationError,
    DuplicateRegistrationError,
)
from mongo_registry.database import (
    Model,
    MongoConnection,
    MongoRegistry,
    MotorDriver,
    RegistryEntry,
)
from mongo_registry.host import PluginHost, PluginRegistration, get_plugin_host, plugin_lifespan
from mongo_registry.models import ReadyState, RegistrationState, SchemaDefinition
from mongo_registry.plugin import MongoPlugin
from mongo_registry.schemas import ConnectionDescriptor, PluginOptions

__all__ = [
    "__version__",
    "RegistryError",
    "ConfigurationError",
    "MongoConnectionError",
    "SchemaResolutionError",
    "ModelConflictError",
    "ModelCompilationError",
    "DuplicateRegistrationError",
    "Model",
    "MongoConnection",
    "MongoRegistry",
    "MotorDriver",
    "RegistryEntry",
    "PluginHost",
    "PluginRegistration",
    "get_plugin_host",
    "plugin_lifespan",
    "ReadyState",
    "RegistrationState",
    "SchemaDefinition",
    "MongoPlugin",
    "ConnectionDescriptor",
    "PluginOptions",
]
