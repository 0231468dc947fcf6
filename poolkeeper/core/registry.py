"""Process-wide connection manager slot.

Signal handlers and the server lifespan need the manager without having it
passed in. Everything else should receive a ConnectionManager explicitly.
All access to the slot goes through the functions below.
"""
from typing import Any, Optional

from poolkeeper.core.config import ConnectionConfig
from poolkeeper.core.errors import AlreadyExistsError
from poolkeeper.core.logger import get_logger
from poolkeeper.core.manager import ConnectionManager

logger = get_logger(__name__)

_connection_manager: Optional[ConnectionManager] = None


def create_connection_manager(config: ConnectionConfig, **kwargs: Any) -> ConnectionManager:
    """Create the process-wide manager. Extra keyword arguments go to ConnectionManager."""
    global _connection_manager
    if _connection_manager is not None:
        raise AlreadyExistsError(
            "Connection manager already exists. Use get_connection_manager() instead."
        )
    _connection_manager = ConnectionManager(config, **kwargs)
    return _connection_manager


def get_connection_manager() -> Optional[ConnectionManager]:
    return _connection_manager


async def close_connection_manager() -> None:
    global _connection_manager
    manager = _connection_manager
    if manager is None:
        return
    _connection_manager = None
    await manager.disconnect()


async def shutdown_connection_manager(timeout_ms: int) -> None:
    """Gracefully shut down and clear the slot.

    The slot is cleared even when the shutdown times out; the
    ShutdownTimeoutError is re-raised so the caller can force an exit.
    """
    global _connection_manager
    manager = _connection_manager
    if manager is None:
        logger.debug("No connection manager to shut down")
        return
    try:
        await manager.graceful_shutdown(timeout_ms)
    finally:
        if _connection_manager is manager:
            _connection_manager = None
