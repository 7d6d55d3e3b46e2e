"""
API routers.
"""
from mongo_registry.routers import health

__all__ = ["health"]
