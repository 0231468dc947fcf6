from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from poolkeeper.core.results import ConnectionStats


class ActivityDialect(Protocol):
    """Engine specific SQL for the liveness probe and the activity view."""
    name: str
    liveness_sql: str
    stats_sql: str

    def parse_stats(self, row: Optional[Mapping[str, Any]]) -> ConnectionStats:
        ...


def _count(row: Optional[Mapping[str, Any]], key: str) -> int:
    if row is None:
        return 0
    value = row.get(key) if hasattr(row, "get") else row[key]
    return int(value or 0)


@dataclass(frozen=True)
class PostgresDialect:
    name: str = "postgresql"
    liveness_sql: str = "SELECT 1 AS ping"
    stats_sql: str = """
        SELECT
            COUNT(*) AS total,
            COUNT(*) FILTER (WHERE state = 'idle') AS idle,
            COUNT(*) FILTER (WHERE state = 'active') AS active
        FROM pg_stat_activity
        WHERE datname = current_database()
    """

    def parse_stats(self, row: Optional[Mapping[str, Any]]) -> ConnectionStats:
        return ConnectionStats(
            total_connections=_count(row, "total"),
            idle_connections=_count(row, "idle"),
            active_connections=_count(row, "active"),
        )
