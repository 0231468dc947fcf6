"""Exceptions raised by the connection lifecycle manager."""


class PoolKeeperError(Exception):
    """Base class for all poolkeeper errors."""


class ConfigurationError(PoolKeeperError, ValueError):
    """A connection setting is missing or invalid."""


class DatabaseConnectionError(PoolKeeperError, ConnectionError):
    """Establishing the pooled connection failed.

    The underlying driver error is chained as ``__cause__``. The manager is left
    not connected and ``connect()`` may be called again.
    """


class IllegalStateError(PoolKeeperError, RuntimeError):
    """An operation was called in a state that does not allow it."""


class ShutdownTimeoutError(PoolKeeperError, TimeoutError):
    """Graceful shutdown did not finish within the allotted time."""


class AlreadyExistsError(PoolKeeperError, RuntimeError):
    """A process-wide connection manager has already been created."""
