"""
Registration state model.
"""
from enum import Enum


class RegistrationState(str, Enum):
    """Lifecycle of one registry context."""
    IDLE = "idle"
    NORMALIZING = "normalizing"
    CONNECTING = "connecting"
    RESOLVING = "resolving"
    COMPILING = "compiling"
    PUBLISHED = "published"
    FAILED = "failed"
    CLOSED = "closed"
