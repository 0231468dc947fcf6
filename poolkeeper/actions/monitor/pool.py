import json
from typing import Dict, Any
from poolkeeper.core.context import ActionContext

async def stats_handler(params: Dict[str, Any], context: ActionContext) -> str:
    """Connection counts from the activity view."""
    stats = await context.manager.get_connection_stats()
    return json.dumps(stats.to_dict())

async def status_handler(params: Dict[str, Any], context: ActionContext) -> str:
    """Manager state and local pool size."""
    manager = context.manager
    status = {
        "state": manager.state.value,
        "is_healthy": manager.is_healthy(),
        "dialect": manager.dialect.name,
        "url": manager.config.redacted_url,
        "pool": manager.pool_size(),
    }
    return json.dumps(status)
