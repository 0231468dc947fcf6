from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from poolkeeper.core import registry
from poolkeeper.core.config import ConnectionConfig
from poolkeeper.core.manager import ConnectionManager


@pytest.fixture
def mock_connection():
    conn = MagicMock()
    conn.fetchval = AsyncMock(return_value=1)
    conn.fetchrow = AsyncMock(return_value={"total": 4, "idle": 3, "active": 1})
    conn.fetch = AsyncMock(return_value=[{"id": 1}])
    # For DML statements, execute returns a status string
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    return conn


@pytest.fixture
def mock_pool(mock_connection):
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield mock_connection

    pool.acquire = MagicMock(side_effect=acquire)
    pool.close = AsyncMock()
    pool.get_size.return_value = 5
    pool.get_idle_size.return_value = 4
    pool.get_max_size.return_value = 20
    return pool


@pytest.fixture
def pool_factory(mock_pool):
    return AsyncMock(return_value=mock_pool)


@pytest.fixture
def config():
    return ConnectionConfig(url="postgres://valid")


@pytest.fixture
def manager(config, pool_factory):
    return ConnectionManager(config, pool_factory=pool_factory)


@pytest.fixture
async def connected_manager(manager):
    await manager.connect()
    return manager


@pytest.fixture(autouse=True)
def reset_connection_manager():
    registry._connection_manager = None
    yield
    registry._connection_manager = None


@pytest.fixture
def healthy_host(monkeypatch):
    """Host checks report up regardless of the machine running the tests."""
    from poolkeeper.actions.monitor import health

    async def up():
        return {"status": "up", "details": {}}

    monkeypatch.setattr(health, "check_memory", up)
    monkeypatch.setattr(health, "check_disk", up)
