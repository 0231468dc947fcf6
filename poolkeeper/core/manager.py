"""Lifecycle of the one pooled database connection a process works with.

The manager creates the pool, proves it with a liveness query, hands out the
query client, reports health and activity counts, and closes the pool again.
Overlapping ``connect()`` calls share a single establishment attempt.
"""
from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import asyncpg

from poolkeeper.core.config import ConnectionConfig
from poolkeeper.core.dialect import ActivityDialect, PostgresDialect
from poolkeeper.core.errors import (
    DatabaseConnectionError,
    IllegalStateError,
    ShutdownTimeoutError,
)
from poolkeeper.core.executor import PoolClient
from poolkeeper.core.logger import get_logger
from poolkeeper.core.results import NO_CONNECTION, ConnectionStats, HealthResult

logger = get_logger(__name__)

# asyncpg opens min_size connections eagerly when the pool is created.
MIN_POOL_SIZE = 5

PoolFactory = Callable[..., Awaitable[asyncpg.Pool]]


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class ConnectionManager:
    def __init__(
        self,
        config: ConnectionConfig,
        dialect: Optional[ActivityDialect] = None,
        pool_factory: Optional[PoolFactory] = None,
    ):
        self._config = config
        self._dialect = dialect or PostgresDialect()
        self._pool_factory = pool_factory
        self._pool: Optional[asyncpg.Pool] = None
        self._client: Optional[PoolClient] = None
        self._is_connected = False
        self._state = ConnectionState.UNINITIALIZED
        self._pending_connect: Optional[asyncio.Task] = None
        self._shutdown_task: Optional[asyncio.Task] = None
        self._created_at = time.monotonic()

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def dialect(self) -> ActivityDialect:
        return self._dialect

    @property
    def uptime_seconds(self) -> float:
        """Seconds since this manager was created."""
        return round(time.monotonic() - self._created_at, 3)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def connect(self) -> None:
        """Establish the pooled connection, or join the attempt already running.

        Returns immediately when connected. Raises DatabaseConnectionError when
        the pool cannot be created or the liveness query fails; the manager is
        then back in the not-connected state and connect() may be retried.
        """
        if self.is_healthy():
            return

        if self._pending_connect is None:
            self._state = ConnectionState.CONNECTING
            task = asyncio.ensure_future(self._establish_connection())
            task.add_done_callback(self._clear_pending_connect)
            self._pending_connect = task

        # Shielded so a cancelled caller does not abort the shared attempt.
        await asyncio.shield(self._pending_connect)

    def _clear_pending_connect(self, task: asyncio.Task) -> None:
        if self._pending_connect is task:
            self._pending_connect = None
        if not task.cancelled():
            # Marks the exception retrieved when every waiter was cancelled.
            task.exception()

    async def _create_pool(self) -> asyncpg.Pool:
        config = self._config
        factory = self._pool_factory or asyncpg.create_pool
        return await factory(
            dsn=config.url,
            min_size=min(MIN_POOL_SIZE, config.max_connections),
            max_size=config.max_connections,
            max_inactive_connection_lifetime=config.idle_timeout_seconds,
            timeout=config.connect_timeout_seconds,
            command_timeout=config.statement_timeout_seconds,
            server_settings={"statement_timeout": str(config.statement_timeout_seconds * 1000)},
        )

    async def _establish_connection(self) -> None:
        pool: Optional[asyncpg.Pool] = None
        try:
            logger.info("Connecting to database", {"url": self._config.redacted_url})
            pool = await self._create_pool()
            client = PoolClient(pool)
            await client.fetchval(self._dialect.liveness_sql)
        except Exception as e:
            self._is_connected = False
            self._state = ConnectionState.UNINITIALIZED
            if pool is not None:
                await self._close_pool(pool)
            logger.error("Failed to establish database connection", {"error": str(e)})
            raise DatabaseConnectionError(f"Failed to establish database connection: {e}") from e

        self._pool = pool
        self._client = client
        self._is_connected = True
        self._state = ConnectionState.CONNECTED
        logger.info("Database connected", {"max_connections": self._config.max_connections})

    async def _close_pool(self, pool: asyncpg.Pool) -> bool:
        try:
            await pool.close()
        except Exception as e:
            logger.error("Error closing database connection", {"error": str(e)})
            return False
        return True

    async def disconnect(self) -> bool:
        """Close the pool and reset to not connected.

        Safe to call in any state. Errors while closing are logged, not raised;
        the return value is False when closing the pool failed.
        """
        if self._pending_connect is not None:
            await asyncio.wait([self._pending_connect])

        pool = self._pool
        self._pool = None
        self._client = None
        self._is_connected = False
        if self._state is not ConnectionState.UNINITIALIZED:
            self._state = ConnectionState.DISCONNECTED

        if pool is None:
            return True

        closed = await self._close_pool(pool)
        logger.info("Database disconnected", {"clean": closed})
        return closed

    def get_client(self) -> PoolClient:
        if not self._is_connected or self._client is None:
            raise IllegalStateError("Database not connected. Call connect() first.")
        return self._client

    async def health_check(self) -> HealthResult:
        start = time.perf_counter()
        client = self._client
        if client is None:
            return HealthResult.unhealthy(NO_CONNECTION)

        try:
            await client.fetchval(self._dialect.liveness_sql)
        except Exception as e:
            return HealthResult.unhealthy(str(e) or type(e).__name__, _elapsed_ms(start))
        return HealthResult.healthy(_elapsed_ms(start))

    async def get_connection_stats(self) -> ConnectionStats:
        client = self._client
        if client is None:
            return ConnectionStats()

        try:
            row = await client.fetchrow(self._dialect.stats_sql)
            return self._dialect.parse_stats(row)
        except Exception as e:
            logger.error("Failed to get connection stats", {"error": str(e)})
            return ConnectionStats.failed(str(e) or type(e).__name__)

    def pool_size(self) -> Dict[str, Any]:
        """Size of the local pool as asyncpg sees it, without a round-trip."""
        pool = self._pool
        if pool is None:
            return {"size": 0, "idle": 0, "max_size": self._config.max_connections}
        return {
            "size": pool.get_size(),
            "idle": pool.get_idle_size(),
            "max_size": pool.get_max_size(),
        }

    def is_healthy(self) -> bool:
        return self._is_connected and self._pool is not None and self._client is not None

    async def graceful_shutdown(self, timeout_ms: int = 30000) -> None:
        """Disconnect, giving up after ``timeout_ms``.

        On timeout ShutdownTimeoutError is raised and the close keeps running
        in the background.
        """
        if self._pool is None and self._pending_connect is None:
            logger.debug("No database connection to shut down")
            return

        logger.info("Initiating graceful database shutdown", {"timeout_ms": timeout_ms})
        task = asyncio.ensure_future(self.disconnect())
        self._shutdown_task = task

        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=max(timeout_ms, 0) / 1000)
        except asyncio.TimeoutError:
            logger.error("Database shutdown timed out", {"timeout_ms": timeout_ms})
            raise ShutdownTimeoutError(f"Database shutdown timed out after {timeout_ms}ms") from None

        logger.info("Database shutdown completed successfully")
