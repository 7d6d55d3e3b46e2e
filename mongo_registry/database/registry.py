"""
Registry assembly.

MongoRegistry is the per-application context object. It runs one
registration through its stages and holds the resulting connections and
models until the host shuts down:

    idle -> normalizing -> connecting -> resolving -> compiling -> published

Any failure moves it to ``failed`` and closes every connection opened so far.
Nothing is exposed unless every connection succeeds.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mongo_registry.core.errors import DuplicateRegistrationError
from mongo_registry.database.compiler import Model, compile_models
from mongo_registry.database.connections import MongoConnection, MongoDriver, MotorDriver, open_connection
from mongo_registry.database.normalizer import normalize_options
from mongo_registry.database.schema_loader import resolve_schemas
from mongo_registry.models.connection import ConnectionSpec
from mongo_registry.models.registry import RegistrationState
from mongo_registry.schemas.options import PluginOptions

logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """A connection and the models compiled against it."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    connection: MongoConnection
    models: dict[str, Model] = Field(default_factory=dict)


def _raise_first(results: list) -> None:
    for result in results:
        if isinstance(result, BaseException):
            raise result


class MongoRegistry:
    """Connections and models for one host application instance."""

    def __init__(
        self,
        *,
        driver: Optional[MongoDriver] = None,
        project_root: Optional[Union[str, Path]] = None,
        default_options: Optional[dict[str, Any]] = None,
        auto_index: bool = True,
    ):
        self.driver = driver or MotorDriver()
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self.default_options = dict(default_options or {})
        self.auto_index = auto_index
        self.state = RegistrationState.IDLE
        self.specs: list[ConnectionSpec] = []
        self._entries: dict[str, RegistryEntry] = {}
        self._opened: list[MongoConnection] = []

    @property
    def entries(self) -> dict[str, RegistryEntry]:
        """Keyed view of the registry, whatever the configuration form."""
        return dict(self._entries)

    def _transition(self, state: RegistrationState) -> None:
        logger.debug(f"Registry state {self.state.value} -> {state.value}")
        self.state = state

    # ==================== Registration ====================

    async def register(
        self,
        options: Union[PluginOptions, Mapping[str, Any]],
    ) -> Union[RegistryEntry, dict[str, RegistryEntry]]:
        """
        Run a full registration.

        Args:
            options: PluginOptions or an equivalent mapping

        Returns:
            The exposed registry (see ``exposed``)

        Raises:
            DuplicateRegistrationError: this context already registered
            RegistryError: the first failure, after opened connections are closed
        """
        if self.state is not RegistrationState.IDLE:
            raise DuplicateRegistrationError(
                f"registry already used (state: {self.state.value})"
            )
        # Leaving IDLE before the first await keeps a concurrent call out
        self._transition(RegistrationState.NORMALIZING)

        try:
            await self._run(options)
        except BaseException as e:
            self._transition(RegistrationState.FAILED)
            logger.error(f"Registration failed: {e}")
            await self._release()
            raise

        return self.exposed()

    async def _run(self, options: Union[PluginOptions, Mapping[str, Any]]) -> None:
        specs = normalize_options(options)
        self.specs = specs

        self._transition(RegistrationState.CONNECTING)
        results = await asyncio.gather(
            *(self._open(spec) for spec in specs),
            return_exceptions=True,
        )
        _raise_first(results)
        connections: list[MongoConnection] = results

        self._transition(RegistrationState.RESOLVING)
        results = await asyncio.gather(
            *(resolve_schemas(spec.schema_patterns, self.project_root) for spec in specs),
            return_exceptions=True,
        )
        _raise_first(results)
        definitions = results

        self._transition(RegistrationState.COMPILING)
        results = await asyncio.gather(
            *(
                compile_models(connection, defs, self.auto_index)
                for connection, defs in zip(connections, definitions)
            ),
            return_exceptions=True,
        )
        _raise_first(results)

        self._entries = {
            spec.key: RegistryEntry(connection=connection, models=models)
            for spec, connection, models in zip(specs, connections, results)
        }
        self._transition(RegistrationState.PUBLISHED)
        logger.info(f"Registered {len(self._entries)} connection(s): {list(self._entries)}")

    async def _open(self, spec: ConnectionSpec) -> MongoConnection:
        connection = await open_connection(spec, self.driver, self.default_options)
        # Visible to _release even if the stage is cancelled
        self._opened.append(connection)
        return connection

    # ==================== Exposure ====================

    def exposed(self) -> Union[RegistryEntry, dict[str, RegistryEntry]]:
        """
        The registry as published to the host.

        A single connection is exposed as its entry; several as a dict keyed
        by connection key.
        """
        if self.state is not RegistrationState.PUBLISHED:
            raise RuntimeError(f"registry is not published (state: {self.state.value})")
        if len(self._entries) == 1:
            return next(iter(self._entries.values()))
        return self.entries

    # ==================== Teardown ====================

    async def _release(self) -> None:
        for connection in self._opened:
            try:
                await connection.close()
            except Exception as e:
                logger.error(f"Failed to release connection '{connection.key}': {e}")
        self._opened = []

    async def close(self) -> None:
        """Release every connection. Release failures are logged, not raised."""
        await self._release()
        self._entries = {}
        self._transition(RegistrationState.CLOSED)
