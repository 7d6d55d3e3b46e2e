"""
Plugin option schemas.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConnectionDescriptor(BaseModel):
    """One connection target as supplied by the caller."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    alias: Optional[str] = Field(None, min_length=1, description="Registry key override")
    uri: str = Field(..., description="MongoDB connection string")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Driver options passed to the client",
    )
    schema_patterns: list[str] = Field(
        default_factory=list,
        alias="schemaPatterns",
        description="Glob patterns for schema files, '!' prefix excludes",
    )


class PluginOptions(BaseModel):
    """
    Registration options.

    Exactly one of ``connection`` or ``connections`` must be given.
    """
    model_config = ConfigDict(extra="forbid")

    connection: Optional[ConnectionDescriptor] = Field(
        None, description="Single connection target"
    )
    connections: Optional[list[ConnectionDescriptor]] = Field(
        None, description="Several connection targets"
    )

    @model_validator(mode="after")
    def check_exactly_one(self) -> "PluginOptions":
        if self.connection is not None and self.connections is not None:
            raise ValueError("'connection' and 'connections' are mutually exclusive")
        if self.connection is None and self.connections is None:
            raise ValueError("one of 'connection' or 'connections' is required")
        if self.connections is not None and not self.connections:
            raise ValueError("'connections' must not be empty")
        return self

    @property
    def descriptors(self) -> list[ConnectionDescriptor]:
        """Descriptors as a list, wrapping the single form."""
        if self.connection is not None:
            return [self.connection]
        return list(self.connections)

    @property
    def is_single(self) -> bool:
        return self.connection is not None
