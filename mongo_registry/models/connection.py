"""
Connection models.
"""
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReadyState(IntEnum):
    """Connection readiness, numbered the way MongoDB drivers report it."""
    DISCONNECTED = 0
    CONNECTED = 1
    CONNECTING = 2
    DISCONNECTING = 3


class ConnectionSpec(BaseModel):
    """
    Normalized connection target with its derived registry key.
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Unique registry key")
    uri: str = Field(..., description="MongoDB connection string")
    host: str = Field(..., description="First host named in the URI")
    port: int = Field(..., description="Port of the first host")
    database: Optional[str] = Field(None, description="Database named in the URI")
    driver_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Caller-supplied driver options",
    )
    uri_options: tuple[str, ...] = Field(
        default=(),
        description="Lowercased driver option names set in the URI",
    )
    schema_patterns: list[str] = Field(
        default_factory=list,
        description="Ordered include/exclude glob patterns",
    )
