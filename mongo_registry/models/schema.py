"""
Schema definition models.

A schema definition is what one schema file declares: a model name, the
pydantic class describing document fields, and optional collection and
index settings.
"""
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class IndexDefinition(BaseModel):
    """Index to create on the model's collection."""
    keys: list[tuple[str, Union[int, str]]] = Field(..., min_length=1)
    unique: bool = False


class SchemaDefinition(BaseModel):
    """
    Named schema loaded from exactly one file.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(..., min_length=1, description="Model name declared by the file")
    document: type[BaseModel] = Field(..., description="Pydantic model describing fields")
    collection: Optional[str] = Field(None, description="Collection name override")
    indexes: list[IndexDefinition] = Field(default_factory=list)
    source: Optional[Path] = Field(None, description="File the schema was loaded from")

    @property
    def collection_name(self) -> str:
        if self.collection:
            return self.collection
        lowered = self.name.lower()
        return lowered if lowered.endswith("s") else f"{lowered}s"

    def fields(self) -> dict[str, Any]:
        """Field name to pydantic FieldInfo."""
        return dict(self.document.model_fields)
