from typing import Literal
from fastmcp.exceptions import ToolError
from poolkeeper.dependencies import CurrentActionContext
from poolkeeper.core.context import ActionContext
from poolkeeper.app import mcp
from poolkeeper.actions.monitor.health import health_handler, readiness_handler
from poolkeeper.actions.monitor.pool import stats_handler, status_handler

MONITOR_ACTIONS = {
    "health": health_handler,
    "ready": readiness_handler,
    "stats": stats_handler,
    "status": status_handler,
}

@mcp.tool()
async def pool_monitor(
    action: Literal["health", "ready", "stats", "status"],
    context: ActionContext = CurrentActionContext(),
) -> str:
    """Database connection monitoring.

    Actions:
    - health: Full health report (liveness, activity counts, uptime)
    - ready: Liveness probe only
    - stats: Connection counts for the current database
    - status: Manager state and local pool size
    """
    handler = MONITOR_ACTIONS.get(action)
    if not handler:
        raise ToolError(f"Unknown action: {action}")

    return await handler({}, context)
