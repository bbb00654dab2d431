"""Lifespan management for the FastAPI application.

Startup builds the Redis client (only for the redis backend), the schedule
store and the schedule service; shutdown releases them in reverse order.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import FastAPI
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from when2tz import state
from when2tz.config import get_settings
from when2tz.scheduling.service import ScheduleService
from when2tz.store import create_store
from when2tz.store.base import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    store: ScheduleStore | None = None
    schedule_service: ScheduleService | None = None


async def init_redis() -> redis.Redis:
    """Initialize Redis connection with connection pool.

    Returns:
        Configured Redis client.
    """
    settings = get_settings()

    redis_pool = RedisConnectionPool(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password if settings.redis.password else None,
        max_connections=settings.redis.max_connections,
        timeout=settings.redis.pool_timeout_sec,
        health_check_interval=settings.redis.health_check_interval,
        socket_timeout=settings.redis.socket_timeout,
        socket_connect_timeout=settings.redis.socket_connect_timeout,
        retry_on_timeout=settings.redis.retry_on_timeout,
        decode_responses=True,
    )

    candidate_client = redis.Redis(connection_pool=redis_pool)
    if hasattr(candidate_client, "__await__"):
        return await candidate_client
    return candidate_client


async def init_store(redis_client: redis.Redis | None = None) -> ScheduleStore:
    """Create the configured store and run its startup hook.

    Returns:
        The initialized store.
    """
    settings = get_settings()
    store = create_store(settings, redis_client=redis_client)
    await store.init()
    logger.info("Schedule store ready (backend=%s)", store.backend)
    return store


async def setup_resources() -> LifespanResources:
    """Set up all shared resources and publish them on ``state``."""
    settings = get_settings()
    resources = LifespanResources()

    if settings.store.backend == "redis":
        resources.redis_client = await init_redis()

    resources.store = await init_store(resources.redis_client)
    resources.schedule_service = ScheduleService(
        resources.store, id_length=settings.schedule.id_length
    )

    state.redis_client = resources.redis_client
    state.store = resources.store
    state.schedule_service = resources.schedule_service

    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown."""
    if resources.store:
        try:
            await resources.store.close()
        except Exception as e:
            logger.warning("Failed to close schedule store: %s", e)

    if resources.redis_client:
        aclose = getattr(resources.redis_client, "aclose", None)
        if callable(aclose):
            await aclose()
        else:
            close = getattr(resources.redis_client, "close", None)
            if callable(close):
                close()

    state.redis_client = None
    state.store = None
    state.schedule_service = None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)
