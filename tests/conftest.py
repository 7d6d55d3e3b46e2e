"""
Global test fixtures for the Mongo registry.

This module provides shared fixtures for all tests including:
- A fake driver that opens mongomock-motor clients instead of real connections
- Paths to schema fixture files
"""

from pathlib import Path
from typing import Any

import pytest
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from mongo_registry.database.normalizer import parse_target


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# =============================================================================
# MongoDB Fixtures (mongomock)
# =============================================================================

class FakeMongoDriver:
    """
    Driver handing out mongomock-motor clients.

    Hosts listed in ``unreachable`` fail like a DNS lookup failure and
    ``rejected`` hosts fail like an authentication rejection.
    """

    def __init__(self, unreachable=("invalid",), rejected=()):
        self.unreachable = set(unreachable)
        self.rejected = set(rejected)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.opened: list[Any] = []
        self.closed: list[Any] = []

    async def connect(self, uri: str, options: dict[str, Any]) -> Any:
        self.calls.append((uri, dict(options)))
        host, port, _ = parse_target(uri)
        if host in self.unreachable:
            raise ServerSelectionTimeoutError(
                f"getaddrinfo ENOTFOUND {host} {host}:{port}"
            )
        if host in self.rejected:
            raise OperationFailure("Authentication failed.", code=18)

        client = AsyncMongoMockClient()
        self.opened.append(client)
        return client

    async def close(self, client: Any) -> None:
        self.closed.append(client)
        client.close()


@pytest.fixture
def fake_driver_factory():
    """Build fake drivers with custom unreachable/rejected hosts."""
    return FakeMongoDriver


@pytest.fixture
def fake_driver(fake_driver_factory) -> FakeMongoDriver:
    """Fake driver; ``invalid`` is an unreachable host."""
    return fake_driver_factory()


@pytest.fixture
def fixtures_dir() -> Path:
    """Project root used for schema pattern resolution."""
    return FIXTURES_DIR


# =============================================================================
# Option Fixtures
# =============================================================================

@pytest.fixture
def single_options() -> dict:
    """Single connection with no schema patterns."""
    return {"connection": {"uri": "mongodb://localhost:27017/test"}}


@pytest.fixture
def multi_options() -> dict:
    """Two connections, one aliased."""
    return {
        "connections": [
            {"alias": "test-db", "uri": "mongodb://localhost:27017/test-1"},
            {"uri": "mongodb://localhost:27017/test-2"},
        ]
    }
