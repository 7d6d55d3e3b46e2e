"""
Registry error types.

Every failure surfaced by a registration derives from RegistryError so the
host can catch the whole family in one place.
"""
from typing import Optional


class RegistryError(Exception):
    """Base class for registration failures."""


class ConfigurationError(RegistryError):
    """Plugin options are invalid. Raised before any I/O."""


class MongoConnectionError(RegistryError):
    """The driver could not reach or authenticate against a server."""

    def __init__(self, host: str, port: int, cause: BaseException):
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(
            f"failed to connect to server [{host}:{port}] on first connect [{cause}]"
        )


class SchemaResolutionError(RegistryError):
    """A matched schema file could not be loaded."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to load schema from {path}: {reason}")


class ModelConflictError(RegistryError):
    """Two schema definitions resolve to one model name on one connection."""

    def __init__(self, name: str, key: str, sources: Optional[list] = None):
        self.name = name
        self.key = key
        self.sources = sources or []
        detail = f" ({', '.join(str(s) for s in self.sources)})" if self.sources else ""
        super().__init__(f"model '{name}' is defined more than once for connection '{key}'{detail}")


class ModelCompilationError(RegistryError):
    """A model could not be prepared against its connection."""


class DuplicateRegistrationError(RegistryError):
    """A registration already exists under the same identity."""
