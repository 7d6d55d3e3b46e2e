"""
MongoDB connection management.

Opens one Motor client per connection spec, injects default driver options
under the caller's own, and tracks each connection's ready state.
"""
import logging
from typing import Any, Iterable, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as DriverConfigurationError
from pymongo.errors import PyMongoError

from mongo_registry.core.errors import ConfigurationError, MongoConnectionError
from mongo_registry.models.connection import ConnectionSpec, ReadyState

logger = logging.getLogger(__name__)

# Injected into every connection unless the caller sets it
DEFAULT_DRIVER_OPTIONS: dict[str, Any] = {
    "uuidRepresentation": "standard",
}

# Database used when the URI names none
DEFAULT_DATABASE = "test"


class MongoDriver(Protocol):
    """What the registry needs from a MongoDB driver."""

    async def connect(self, uri: str, options: dict[str, Any]) -> Any:
        ...

    async def close(self, client: Any) -> None:
        ...


class MotorDriver:
    """Driver backed by Motor's AsyncIOMotorClient."""

    async def connect(self, uri: str, options: dict[str, Any]) -> AsyncIOMotorClient:
        """
        Create a client and wait for the first successful ping.

        The client connects lazily, so the ping is what makes an unreachable
        host or a rejected login surface here.

        Raises:
            ConfigurationError: the driver rejected an option before connecting
        """
        try:
            client = AsyncIOMotorClient(uri, **options)
        except (DriverConfigurationError, ValueError, TypeError) as e:
            raise ConfigurationError(f"invalid driver options: {e}") from e
        try:
            await client.admin.command("ping")
        except BaseException:
            client.close()
            raise
        return client

    async def close(self, client: AsyncIOMotorClient) -> None:
        client.close()


def merge_driver_options(
    options: Optional[dict[str, Any]] = None,
    defaults: Optional[dict[str, Any]] = None,
    uri_options: Iterable[str] = (),
) -> dict[str, Any]:
    """
    Overlay caller options on top of the defaults.

    Option names compare case-insensitively, as the driver treats them.
    A default is dropped when the caller sets the same option, either in
    ``options`` or in the URI query string.

    Args:
        options: Caller-supplied driver options
        defaults: Extra defaults, merged over DEFAULT_DRIVER_OPTIONS
        uri_options: Names of the options already set in the URI

    Returns:
        New dict; caller values win on every key
    """
    options = options or {}
    taken = {name.lower() for name in options} | {name.lower() for name in uri_options}

    layered: dict[str, tuple[str, Any]] = {}
    for layer in (DEFAULT_DRIVER_OPTIONS, defaults or {}):
        for name, value in layer.items():
            layered[name.lower()] = (name, value)

    merged = {name: value for lowered, (name, value) in layered.items() if lowered not in taken}
    merged.update(options)
    return merged


class MongoConnection:
    """Live connection to one database target."""

    def __init__(
        self,
        spec: ConnectionSpec,
        options: dict[str, Any],
        driver: MongoDriver,
    ):
        self.key = spec.key
        self.uri = spec.uri
        self.host = spec.host
        self.port = spec.port
        self.name = spec.database or DEFAULT_DATABASE
        self.options = options
        self.ready_state = ReadyState.DISCONNECTED
        self.client: Any = None
        self._driver = driver

    def __repr__(self) -> str:
        return (
            f"MongoConnection(key={self.key!r}, host={self.host!r}, "
            f"port={self.port}, name={self.name!r}, state={self.ready_state.name})"
        )

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self.client is None:
            raise RuntimeError(f"connection '{self.key}' is not open")
        return self.client[self.name]

    async def open(self) -> None:
        """
        Connect through the driver.

        Raises:
            ConfigurationError: the driver rejected the connection options
            MongoConnectionError: the driver reported a connect failure
        """
        self.ready_state = ReadyState.CONNECTING
        try:
            self.client = await self._driver.connect(self.uri, self.options)
        except DriverConfigurationError as e:
            self.ready_state = ReadyState.DISCONNECTED
            raise ConfigurationError(f"invalid driver options: {e}") from e
        except PyMongoError as e:
            self.ready_state = ReadyState.DISCONNECTED
            raise MongoConnectionError(self.host, self.port, e) from e
        except BaseException:
            self.ready_state = ReadyState.DISCONNECTED
            raise
        self.ready_state = ReadyState.CONNECTED
        logger.info(f"Connected to MongoDB [{self.host}:{self.port}/{self.name}] as '{self.key}'")

    async def ping(self) -> None:
        """
        Round-trip to the server and refresh the ready state from the result.

        Raises:
            PyMongoError: the server did not answer
        """
        if self.client is None:
            raise RuntimeError(f"connection '{self.key}' is not open")
        try:
            await self.client.admin.command("ping")
        except PyMongoError:
            self.ready_state = ReadyState.DISCONNECTED
            raise
        self.ready_state = ReadyState.CONNECTED

    async def close(self) -> None:
        """Release the client. Calling it again is a no-op."""
        if self.client is None:
            self.ready_state = ReadyState.DISCONNECTED
            return
        self.ready_state = ReadyState.DISCONNECTING
        try:
            await self._driver.close(self.client)
        finally:
            self.client = None
            self.ready_state = ReadyState.DISCONNECTED
        logger.info(f"Disconnected '{self.key}'")


async def open_connection(
    spec: ConnectionSpec,
    driver: Optional[MongoDriver] = None,
    defaults: Optional[dict[str, Any]] = None,
) -> MongoConnection:
    """
    Open a connection for one spec.

    No retry: a failed attempt surfaces immediately.

    Args:
        spec: Normalized ConnectionSpec
        driver: Driver to connect with (Motor by default)
        defaults: Default options, overridden by the connection's own

    Returns:
        Connected MongoConnection

    Raises:
        ConfigurationError: the driver rejected the connection options
        MongoConnectionError: the driver could not connect
    """
    options = merge_driver_options(spec.driver_options, defaults, spec.uri_options)
    connection = MongoConnection(spec, options, driver or MotorDriver())
    await connection.open()
    return connection
