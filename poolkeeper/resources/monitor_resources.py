from poolkeeper.dependencies import CurrentActionContext
from poolkeeper.core.context import ActionContext
from poolkeeper.app import mcp
from poolkeeper.actions.monitor.health import health_handler
from poolkeeper.actions.monitor.pool import stats_handler

@mcp.resource("pool://monitor/health")
async def health_resource(ctx: ActionContext = CurrentActionContext()) -> str:
    """Database health report."""
    return await health_handler({}, ctx)

@mcp.resource("pool://monitor/stats")
async def stats_resource(ctx: ActionContext = CurrentActionContext()) -> str:
    """Connection counts for the current database."""
    return await stats_handler({}, ctx)
