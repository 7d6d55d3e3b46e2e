"""
Data models for connection specs, schemas and registration state.
"""
from mongo_registry.models.connection import ConnectionSpec, ReadyState
from mongo_registry.models.registry import RegistrationState
from mongo_registry.models.schema import IndexDefinition, SchemaDefinition

__all__ = [
    "ConnectionSpec",
    "ReadyState",
    "RegistrationState",
    "IndexDefinition",
    "SchemaDefinition",
]
