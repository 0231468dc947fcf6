from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

NO_CONNECTION = "no database connection"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class HealthResult:
    """Outcome of a liveness probe. A failed probe is a value, not an exception."""
    status: HealthStatus
    latency_ms: float
    error: Optional[str] = None

    @classmethod
    def healthy(cls, latency_ms: float) -> "HealthResult":
        return cls(HealthStatus.HEALTHY, latency_ms)

    @classmethod
    def unhealthy(cls, error: str, latency_ms: float = 0) -> "HealthResult":
        return cls(HealthStatus.UNHEALTHY, latency_ms, error)

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value, "latency_ms": self.latency_ms}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ConnectionStats:
    """Connection counts from the engine's activity view.

    ``error`` is set when the counts could not be read; they are zero then.
    """
    total_connections: int = 0
    idle_connections: int = 0
    active_connections: int = 0
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "ConnectionStats":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "total_connections": self.total_connections,
            "idle_connections": self.idle_connections,
            "active_connections": self.active_connections,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
