import os
from contextlib import asynccontextmanager
from typing import Optional

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from poolkeeper.actions.monitor.health import build_health_report
from poolkeeper.core.config import ConnectionConfig, shutdown_timeout_ms
from poolkeeper.core.context import ActionContext
from poolkeeper.core.errors import ShutdownTimeoutError
from poolkeeper.core.logger import get_logger
from poolkeeper.core.manager import ConnectionManager
from poolkeeper.core.registry import (
    close_connection_manager,
    create_connection_manager,
    get_connection_manager,
    shutdown_connection_manager,
)
from poolkeeper.core.results import HealthStatus

logger = get_logger(__name__)

APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Connect the process database pool before serving and close it on exit."""
    manager = create_connection_manager(ConnectionConfig.from_env())
    try:
        await manager.connect()
    except Exception:
        await close_connection_manager()
        raise

    try:
        yield {"action_context": ActionContext(manager=manager, version=APP_VERSION)}
    finally:
        try:
            await shutdown_connection_manager(shutdown_timeout_ms())
        except ShutdownTimeoutError as e:
            logger.warning("Exiting without a clean database shutdown", {"error": str(e)})


mcp = FastMCP(
    name="poolkeeper",
    version=APP_VERSION,
    instructions=(
        "poolkeeper - Inspect the health, activity and pool state of the"
        " service's PostgreSQL connection."
    ),
    lifespan=lifespan,
)


async def health_response(manager: Optional[ConnectionManager]) -> JSONResponse:
    uptime = manager.uptime_seconds if manager is not None else 0
    report = await build_health_report(manager, APP_VERSION, uptime)
    status_code = 503 if report["status"] == HealthStatus.UNHEALTHY.value else 200
    return JSONResponse(report, status_code=status_code)


async def readiness_response(manager: Optional[ConnectionManager]) -> JSONResponse:
    if manager is None:
        return JSONResponse(
            {"status": "unhealthy", "latency_ms": 0, "error": "Database connection manager not initialized"},
            status_code=503,
        )
    result = await manager.health_check()
    return JSONResponse(result.to_dict(), status_code=200 if result.is_healthy else 503)


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    """Full health report; 503 when the database is down."""
    return await health_response(get_connection_manager())


@mcp.custom_route("/ready", methods=["GET"])
async def ready(request: Request) -> JSONResponse:
    """Readiness probe; 503 until the database answers."""
    return await readiness_response(get_connection_manager())
