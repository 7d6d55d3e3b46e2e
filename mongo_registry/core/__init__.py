"""
Core module - Error types and logging setup.
"""
from mongo_registry.core.errors import (
    RegistryError,
    ConfigurationError,
    MongoConnectionError,
    SchemaResolutionError,
    ModelConflictError,
    ModelCompilationError,
    DuplicateRegistrationError,
)
from mongo_registry.core.logging_config import configure_logging

__all__ = [
    "RegistryError",
    "ConfigurationError",
    "MongoConnectionError",
    "SchemaResolutionError",
    "ModelConflictError",
    "ModelCompilationError",
    "DuplicateRegistrationError",
    "configure_logging",
]
