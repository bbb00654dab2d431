"""Dependency injection for FastAPI endpoints.

This module provides FastAPI dependencies for accessing the schedule store
and service that the lifespan sets up.

Usage in controllers:
    from when2tz.dependencies import Service

    @router.get("/schedules/{schedule_id}")
    async def get_schedule(schedule_id: str, service: Service):
        ...
"""

from typing import Annotated

from fastapi import Depends

from when2tz import state
from when2tz.errors import ServiceUnavailableError
from when2tz.scheduling.service import ScheduleService
from when2tz.store.base import ScheduleStore


def get_optional_store() -> ScheduleStore | None:
    return state.store


def get_schedule_service() -> ScheduleService:
    """Get the schedule service.

    Raises:
        ServiceUnavailableError: If the service is not initialized.
    """
    if state.schedule_service is None:
        raise ServiceUnavailableError(detail="Schedule service not initialized")
    return state.schedule_service


OptionalStore = Annotated[ScheduleStore | None, Depends(get_optional_store)]
Service = Annotated[ScheduleService, Depends(get_schedule_service)]
