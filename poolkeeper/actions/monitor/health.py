import asyncio
import json
import shutil
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil

from poolkeeper.core.context import ActionContext
from poolkeeper.core.manager import ConnectionManager
from poolkeeper.core.results import HealthStatus

CRITICAL_CHECKS = ("database",)

# Utilization percentages above which a host check reports down.
MEMORY_THRESHOLD = 90.0
DISK_THRESHOLD = 90.0

_MB = 1024 * 1024

async def check_database(manager: Optional[ConnectionManager]) -> Dict[str, Any]:
    """Database check for the health report: liveness plus activity counts."""
    if manager is None:
        return {"status": "down", "error": "Database connection manager not initialized"}

    health = await manager.health_check()
    if not health.is_healthy:
        return {
            "status": "down",
            "response_time_ms": health.latency_ms,
            "error": health.error,
        }

    stats = await manager.get_connection_stats()
    return {
        "status": "up",
        "response_time_ms": health.latency_ms,
        "details": {**stats.to_dict(), "latency_ms": health.latency_ms},
    }

async def check_memory() -> Dict[str, Any]:
    """Host memory utilization plus this process's resident size."""
    memory = psutil.virtual_memory()
    rss = psutil.Process().memory_info().rss
    return {
        "status": "down" if memory.percent > MEMORY_THRESHOLD else "up",
        "details": {
            "rss": round(rss / _MB),
            "total": round(memory.total / _MB),
            "available": round(memory.available / _MB),
            "utilization": round(memory.percent, 2),
            "unit": "MB",
        },
    }

async def check_disk(path: str = ".") -> Dict[str, Any]:
    """Utilization of the filesystem holding ``path``."""
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return {"status": "up", "details": {"status": "unavailable", "reason": "disk_check_not_supported"}}

    utilization = round(usage.used / usage.total * 100, 2) if usage.total else 0.0
    return {
        "status": "down" if utilization > DISK_THRESHOLD else "up",
        "details": {
            "total": round(usage.total / _MB),
            "used": round(usage.used / _MB),
            "free": round(usage.free / _MB),
            "utilization": utilization,
            "unit": "MB",
        },
    }

def _overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
    down = [name for name, check in checks.items() if check["status"] == "down"]
    if any(name in CRITICAL_CHECKS for name in down):
        return HealthStatus.UNHEALTHY
    if down:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY

async def build_health_report(
    manager: Optional[ConnectionManager], version: str, uptime_seconds: float
) -> Dict[str, Any]:
    names = ("database", "memory", "disk")
    results = await asyncio.gather(
        check_database(manager), check_memory(), check_disk(), return_exceptions=True
    )

    checks: Dict[str, Dict[str, Any]] = {}
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            checks[name] = {"status": "down", "error": str(result) or type(result).__name__}
        else:
            checks[name] = result

    return {
        "status": _overall_status(checks).value,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": uptime_seconds,
        "version": version,
    }

async def health_handler(params: Dict[str, Any], context: ActionContext) -> str:
    """Full health report."""
    report = await build_health_report(context.manager, context.version, context.uptime_seconds)
    return json.dumps(report)

async def readiness_handler(params: Dict[str, Any], context: ActionContext) -> str:
    """Liveness probe only."""
    result = await context.manager.health_check()
    return json.dumps(result.to_dict())
