"""PostgreSQL-backed schedule store: one JSONB document per schedule."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import psycopg
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError

from when2tz.models.schedules import Schedule
from when2tz.store.base import ScheduleStore, StoreError

_logger = logging.getLogger("when2tz.store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS w2tz_schedules (
    id TEXT PRIMARY KEY,
    data JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
"""


class PostgresStore(ScheduleStore):
    backend = "postgres"

    def __init__(
        self,
        dsn: str,
        pool_min_size: int = 1,
        pool_max_size: int = 10,
        pool_timeout: int = 30,
        use_pool: bool = True,
    ) -> None:
        self._dsn = dsn
        self._pool_min_size = pool_min_size
        self._pool_max_size = pool_max_size
        self._pool_timeout = pool_timeout
        self._use_pool = use_pool
        self._pool: AsyncConnectionPool | None = None

    async def init(self) -> None:
        if self._use_pool and self._pool is None:
            self._pool = AsyncConnectionPool(
                self._dsn,
                min_size=self._pool_min_size,
                max_size=self._pool_max_size,
                timeout=self._pool_timeout,
                check=AsyncConnectionPool.check_connection,
                open=False,
            )
            await self._pool.open()
            _logger.info(
                "Database connection pool initialized (min=%d, max=%d)",
                self._pool_min_size, self._pool_max_size,
            )
        try:
            async with self._connection() as conn:
                await conn.execute(SCHEMA)
        except psycopg.Error as e:
            raise StoreError(f"failed to create schema: {e}") from e

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            _logger.info("Database connection pool closed")

    @asynccontextmanager
    async def _connection(self):
        if self._pool is not None:
            async with self._pool.connection() as conn:
                await conn.set_autocommit(True)
                yield conn
        else:
            async with await psycopg.AsyncConnection.connect(self._dsn, autocommit=True) as conn:
                yield conn

    async def ping(self) -> bool:
        try:
            async with self._connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except psycopg.Error as e:
            _logger.warning("Postgres health check failed: %s", e)
            return False

    async def get(self, schedule_id: str) -> Schedule | None:
        try:
            async with self._connection() as conn:
                row = await (
                    await conn.execute("SELECT data FROM w2tz_schedules WHERE id = %s", (schedule_id,))
                ).fetchone()
        except psycopg.Error as e:
            raise StoreError(f"postgres read failed: {e}") from e
        if not row:
            return None
        try:
            return Schedule.model_validate(row[0])
        except ValidationError as e:
            _logger.error("Corrupt schedule %s in postgres: %s", schedule_id, e)
            raise StoreError(f"corrupt schedule {schedule_id}") from e

    async def put(self, schedule: Schedule) -> None:
        now = datetime.now(UTC)
        data = schedule.model_dump(mode="json", by_alias=True)
        try:
            async with self._connection() as conn:
                await conn.execute(
                    """INSERT INTO w2tz_schedules (id, data, created_at, updated_at)
                       VALUES (%s, %s, %s, %s)
                       ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data, updated_at = EXCLUDED.updated_at""",
                    (schedule.id, Json(data), schedule.created_at, now),
                )
        except psycopg.Error as e:
            _logger.error("Failed to write schedule %s to postgres: %s", schedule.id, e)
            raise StoreError(f"postgres write failed: {e}") from e

    async def list_ids(self) -> list[str]:
        try:
            async with self._connection() as conn:
                rows = await conn.execute("SELECT id FROM w2tz_schedules ORDER BY created_at")
                return [row[0] async for row in rows]
        except psycopg.Error as e:
            raise StoreError(f"postgres read failed: {e}") from e
