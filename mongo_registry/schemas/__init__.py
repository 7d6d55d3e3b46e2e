"""
Input schemas for plugin registration.
"""
from mongo_registry.schemas.options import ConnectionDescriptor, PluginOptions

__all__ = ["ConnectionDescriptor", "PluginOptions"]
