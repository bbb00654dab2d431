"""Schedule persistence backends.

Usage:
    from when2tz.store import create_store
    store = create_store(get_settings(), redis_client=client)
    await store.init()
"""

import redis.asyncio as redis

from when2tz.config import Settings
from when2tz.store.base import ScheduleStore, StoreError
from when2tz.store.memory import JsonFileStore, MemoryStore
from when2tz.store.postgres import PostgresStore
from when2tz.store.redis_store import RedisStore


def create_store(settings: Settings, redis_client: redis.Redis | None = None) -> ScheduleStore:
    """Build the store selected by ``STORE_BACKEND``."""
    backend = settings.store.backend
    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return JsonFileStore(settings.store.path)
    if backend == "redis":
        if redis_client is None:
            raise ValueError("redis backend requires a redis client")
        return RedisStore(redis_client, key_prefix=settings.store.key_prefix)
    if backend == "postgres":
        pg = settings.postgres
        return PostgresStore(
            pg.get_dsn(),
            pool_min_size=pg.pool_min_size,
            pool_max_size=pg.pool_max_size,
            pool_timeout=pg.pool_timeout,
        )
    raise ValueError(f"unknown store backend: {backend}")


__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "PostgresStore",
    "RedisStore",
    "ScheduleStore",
    "StoreError",
    "create_store",
]
