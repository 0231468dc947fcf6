from dataclasses import dataclass

from poolkeeper.core.executor import PoolClient
from poolkeeper.core.manager import ConnectionManager

@dataclass
class ActionContext:
    """Holds shared application state for tool actions."""
    manager: ConnectionManager
    version: str = "1.0.0"

    @property
    def uptime_seconds(self) -> float:
        return self.manager.uptime_seconds

def resolve_client(ctx: ActionContext) -> PoolClient:
    """
    Returns the query client of the context's manager.

    Raises IllegalStateError when the manager is not connected.
    """
    return ctx.manager.get_client()
