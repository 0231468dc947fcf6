"""Custom FastMCP dependencies for poolkeeper."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastmcp.dependencies import Dependency

if TYPE_CHECKING:
    from poolkeeper.core.context import ActionContext


class _CurrentActionContext(Dependency):  # type: ignore[misc]
    """Async context manager for ActionContext dependency."""

    async def __aenter__(self) -> ActionContext:
        """Get the ActionContext from server lifespan."""
        from fastmcp.server.dependencies import get_server

        server = get_server()
        lifespan_result = getattr(server, "_lifespan_result", None)
        if not lifespan_result:
            raise RuntimeError(
                "ActionContext not available. Server lifespan may not have completed."
            )

        action_context = lifespan_result.get("action_context")
        if action_context is None:
            raise RuntimeError(
                "ActionContext not found in server lifespan. "
                "Ensure the lifespan context manager sets action_context."
            )

        return action_context

    async def __aexit__(self, *args: object) -> None:
        pass


def CurrentActionContext() -> ActionContext:
    """Get the current ActionContext instance.

    The context carries the process connection manager created by the server
    lifespan.

    Raises:
        RuntimeError: If no active ActionContext found

    Example:
        ```python
        @mcp.tool()
        async def pool_state(ctx: ActionContext = CurrentActionContext()) -> str:
            return ctx.manager.state.value
        ```
    """
    return cast("ActionContext", _CurrentActionContext())
