from __future__ import annotations
import asyncpg
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Dict, Optional
from dataclasses import dataclass, asdict

@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    row_count: Optional[int]
    fields: Optional[List[Dict[str, Any]]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def _row_count_from_status(status_message: Optional[str]) -> int:
    # Command tags look like "INSERT 0 1", "UPDATE 3", "CREATE TABLE".
    row_count_str = status_message.split()[-1] if status_message else '0'
    return int(row_count_str) if row_count_str.isdigit() else 0

class PoolClient:
    """Query interface bound to one asyncpg pool.

    Handed out by ConnectionManager.get_client(). Callers must not keep it past
    a disconnect of the manager that owns the pool.
    """

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        async with self._pool.acquire() as connection:
            yield connection

    async def execute(self, sql: str, params: Optional[List[Any]] = None, timeout_ms: Optional[int] = None) -> QueryResult:
        timeout = timeout_ms / 1000 if timeout_ms else None
        async with self.acquire() as connection:
            if sql.strip().upper().startswith("SELECT"):
                results = await connection.fetch(sql, *(params or []), timeout=timeout)
                fields = []
                if results and hasattr(results[0], "keys"):
                    fields = [{"name": name} for name in results[0].keys()]
                return QueryResult(
                    rows=[dict(row) for row in results],
                    row_count=len(results),
                    fields=fields,
                )

            status_message = await connection.execute(sql, *(params or []), timeout=timeout)
            return QueryResult(
                rows=[],
                row_count=_row_count_from_status(status_message),
                fields=[],
            )

    async def fetchval(self, sql: str, *args: Any) -> Any:
        async with self.acquire() as connection:
            return await connection.fetchval(sql, *args)

    async def fetchrow(self, sql: str, *args: Any) -> Optional[asyncpg.Record]:
        async with self.acquire() as connection:
            return await connection.fetchrow(sql, *args)
