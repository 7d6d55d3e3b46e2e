"""
Database module - connections, schema discovery, model compilation and the registry.
"""
from mongo_registry.database.connections import (
    DEFAULT_DRIVER_OPTIONS,
    MongoConnection,
    MongoDriver,
    MotorDriver,
    merge_driver_options,
    open_connection,
)
from mongo_registry.database.normalizer import normalize_options, parse_target, uri_option_names
from mongo_registry.database.schema_loader import (
    expand_braces,
    load_schema,
    resolve_patterns,
    resolve_schemas,
)
from mongo_registry.database.compiler import Model, compile_models
from mongo_registry.database.registry import MongoRegistry, RegistryEntry

__all__ = [
    "DEFAULT_DRIVER_OPTIONS",
    "MongoConnection",
    "MongoDriver",
    "MotorDriver",
    "merge_driver_options",
    "open_connection",
    "normalize_options",
    "parse_target",
    "uri_option_names",
    "expand_braces",
    "load_schema",
    "resolve_patterns",
    "resolve_schemas",
    "Model",
    "compile_models",
    "MongoRegistry",
    "RegistryEntry",
]
