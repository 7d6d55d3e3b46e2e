"""
Model compilation.

Binds schema definitions to one connection, producing Model handles that
read and write the schema's collection on that connection only.
"""
import asyncio
import logging
from typing import Any, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from mongo_registry.core.errors import ModelCompilationError, ModelConflictError
from mongo_registry.database.connections import MongoConnection
from mongo_registry.models.schema import SchemaDefinition

logger = logging.getLogger(__name__)


class Model:
    """Connection-bound model for one schema definition."""

    def __init__(self, definition: SchemaDefinition, connection: MongoConnection):
        self.name = definition.name
        self.definition = definition
        self.connection = connection
        self.collection: AsyncIOMotorCollection = connection.db[definition.collection_name]

    def __repr__(self) -> str:
        return f"Model({self.name!r}, connection={self.connection.key!r})"

    def validate(self, data: dict[str, Any]) -> dict[str, Any]:
        """Validate a document against the schema and return it ready to store."""
        document = self.definition.document.model_validate(data)
        stored = document.model_dump(by_alias=True)
        if "_id" in stored and stored["_id"] is None:
            del stored["_id"]
        return stored

    # ==================== CRUD ====================

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Validate and insert a document; returns it with its ``_id``."""
        document = self.validate(data)
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def find_one(self, query: Optional[dict] = None) -> Optional[dict]:
        return await self.collection.find_one(query or {})

    async def find(self, query: Optional[dict] = None, limit: int = 0) -> list[dict]:
        cursor = self.collection.find(query or {})
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def update_one(self, query: dict, changes: dict[str, Any]) -> int:
        """Apply ``$set`` changes to the first match; returns the modified count."""
        result = await self.collection.update_one(query, {"$set": changes})
        return result.modified_count

    async def delete_one(self, query: dict) -> int:
        result = await self.collection.delete_one(query)
        return result.deleted_count

    async def count(self, query: Optional[dict] = None) -> int:
        return await self.collection.count_documents(query or {})

    # ==================== Indexes ====================

    async def ensure_indexes(self) -> None:
        """Create the indexes declared by the schema."""
        for index in self.definition.indexes:
            try:
                await self.collection.create_index(index.keys, unique=index.unique)
            except PyMongoError as e:
                raise ModelCompilationError(
                    f"failed to create index {index.keys} for model '{self.name}' "
                    f"on connection '{self.connection.key}': {e}"
                ) from e


def check_conflicts(key: str, definitions: Iterable[SchemaDefinition]) -> None:
    """
    Reject definitions that share a model name.

    Raises:
        ModelConflictError: naming the model and both source files
    """
    seen: dict[str, SchemaDefinition] = {}
    for definition in definitions:
        previous = seen.get(definition.name)
        if previous is not None:
            raise ModelConflictError(
                definition.name, key, [previous.source, definition.source]
            )
        seen[definition.name] = definition


async def compile_models(
    connection: MongoConnection,
    definitions: list[SchemaDefinition],
    auto_index: bool = True,
) -> dict[str, Model]:
    """
    Compile schema definitions against one connection.

    Args:
        connection: Open connection the models bind to
        definitions: Definitions resolved for this connection
        auto_index: Create declared indexes while compiling

    Returns:
        Model name to Model, empty when there are no definitions

    Raises:
        ModelConflictError: two definitions share a name
        ModelCompilationError: index creation failed
    """
    check_conflicts(connection.key, definitions)

    models = {definition.name: Model(definition, connection) for definition in definitions}

    if auto_index and models:
        await asyncio.gather(*(model.ensure_indexes() for model in models.values()))

    if models:
        logger.info(f"Compiled models for '{connection.key}': {sorted(models)}")
    return models
