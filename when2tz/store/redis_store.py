"""
Redis-backed schedule store.

Each schedule is one JSON string under ``<base>:<id>``; the set
``<base>-index`` indexes them. ``<base>`` is the key prefix without its
trailing colons, so no schedule id can address the index key.
"""

import logging

import redis.asyncio as redis
from pydantic import ValidationError

from when2tz.models.schedules import Schedule
from when2tz.store.base import ScheduleStore, StoreError

logger = logging.getLogger("when2tz.store")


class RedisStore(ScheduleStore):
    backend = "redis"

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "when2tz:schedule:") -> None:
        self.redis_client = redis_client
        self.key_prefix = key_prefix
        self._base = key_prefix.rstrip(":")

    def _key(self, schedule_id: str) -> str:
        return f"{self._base}:{schedule_id}"

    @property
    def _index_key(self) -> str:
        return f"{self._base}-index"

    async def ping(self) -> bool:
        try:
            return bool(await self.redis_client.ping())
        except redis.RedisError:
            return False

    async def get(self, schedule_id: str) -> Schedule | None:
        try:
            raw = await self.redis_client.get(self._key(schedule_id))
        except redis.RedisError as e:
            raise StoreError(f"redis read failed: {e}") from e
        if raw is None:
            return None
        try:
            return Schedule.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Corrupt schedule %s in redis: %s", schedule_id, e)
            raise StoreError(f"corrupt schedule {schedule_id}") from e

    async def put(self, schedule: Schedule) -> None:
        payload = schedule.model_dump_json(by_alias=True)
        try:
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.set(self._key(schedule.id), payload)
                pipe.sadd(self._index_key, schedule.id)
                await pipe.execute()
        except redis.RedisError as e:
            logger.error("Failed to write schedule %s to redis: %s", schedule.id, e)
            raise StoreError(f"redis write failed: {e}") from e

    async def list_ids(self) -> list[str]:
        try:
            members = await self.redis_client.smembers(self._index_key)
        except redis.RedisError as e:
            raise StoreError(f"redis read failed: {e}") from e
        return sorted(m.decode() if isinstance(m, bytes) else m for m in members)
