import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from when2tz.config import get_settings
from when2tz.dependencies import Service
from when2tz.errors import NotFoundError, PersistenceError, ValidationError
from when2tz.models.schedules import (
    GridResponse,
    ParticipantLookupResponse,
    ParticipantResponse,
    RenderedDay,
    RenderedSlot,
    Schedule,
    ScheduleResponse,
    SlotDetail,
    TimeZonesResponse,
    TopSlotsResponse,
)
from when2tz.scheduling import aggregate, names_available_at, top_slots
from when2tz.scheduling.grid import render_grid
from when2tz.scheduling.service import ScheduleNotFoundError, ScheduleService
from when2tz.scheduling.timezones import (
    UnknownTimeZoneError,
    format_offset,
    is_valid_time_zone,
    list_time_zones,
    resolve_zone,
)
from when2tz.store.base import StoreError

logger = logging.getLogger("when2tz.schedules")
router = APIRouter()


class CreateScheduleRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    start_date: date
    end_date: Optional[date] = None
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=0, le=23)
    slot_minutes: Optional[int] = None
    base_time_zone: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("title must be 1-200 characters")
        return v

    @field_validator("end_date", "base_time_zone", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("base_time_zone")
    @classmethod
    def validate_base_time_zone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not is_valid_time_zone(v):
            raise ValueError(f"unknown time zone: {v}")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "CreateScheduleRequest":
        limits = get_settings().schedule
        if self.end_date is None:
            self.end_date = self.start_date
        if self.base_time_zone is None:
            self.base_time_zone = limits.default_time_zone
        if self.slot_minutes is None:
            self.slot_minutes = limits.default_slot_minutes
        if self.end_hour <= self.start_hour:
            raise ValueError("endHour must be after startHour")
        if not 0 < self.slot_minutes <= limits.max_slot_minutes:
            raise ValueError(f"slotMinutes must be between 1 and {limits.max_slot_minutes}")
        if self.end_date < self.start_date:
            raise ValueError("endDate must be the same as or after startDate")
        span = (self.end_date - self.start_date).days + 1
        if span > limits.max_days:
            raise ValueError(f"date range must cover at most {limits.max_days} days")
        return self


class UpsertParticipantRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    time_zone: Optional[str] = None
    availability: List[Any] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) > 100:
            raise ValueError("name must be at most 100 characters")
        return v or None

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not is_valid_time_zone(v):
            raise ValueError(f"unknown time zone: {v}")
        return v


@contextmanager
def _schedule_errors(schedule_id: str, action: str = "read schedule"):
    try:
        yield
    except ScheduleNotFoundError:
        logger.warning("Schedule not found: %s", schedule_id)
        raise NotFoundError(detail="Schedule not found", error_code="SCHEDULE_NOT_FOUND")
    except StoreError as e:
        logger.exception("Failed to %s %s", action, schedule_id)
        raise PersistenceError(detail=f"Failed to {action}: {e}")


async def _load_schedule(service: ScheduleService, schedule_id: str) -> Schedule:
    with _schedule_errors(schedule_id):
        return await service.get_schedule(schedule_id)


@router.post("/schedules", status_code=201, response_model=ScheduleResponse)
async def create_schedule(req: CreateScheduleRequest, service: Service) -> ScheduleResponse:
    logger.info(
        "POST /schedules title=%s range=%s..%s hours=%d-%d slot=%s zone=%s",
        req.title, req.start_date, req.end_date, req.start_hour, req.end_hour,
        req.slot_minutes, req.base_time_zone,
    )
    with _schedule_errors("(new)", action="persist new schedule"):
        schedule, aggregated = await service.create_schedule(
            title=req.title,
            start_date=req.start_date,
            end_date=req.end_date,
            start_hour=req.start_hour,
            end_hour=req.end_hour,
            slot_minutes=req.slot_minutes,
            base_time_zone=req.base_time_zone,
        )
    return ScheduleResponse(schedule=schedule, aggregated=aggregated)


@router.get("/schedules/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(schedule_id: str, service: Service) -> ScheduleResponse:
    logger.info("GET /schedules/%s", schedule_id)
    with _schedule_errors(schedule_id):
        schedule, aggregated = await service.get_schedule_with_aggregate(schedule_id)
    return ScheduleResponse(schedule=schedule, aggregated=aggregated)


@router.get("/schedules/{schedule_id}/slots/{index}", response_model=SlotDetail)
async def get_slot(schedule_id: str, index: int, service: Service) -> SlotDetail:
    schedule = await _load_schedule(service, schedule_id)
    if not 0 <= index < schedule.slot_count:
        raise NotFoundError(
            detail="Slot not found", error_code="SLOT_NOT_FOUND", index=index, slot_count=schedule.slot_count
        )
    aggregated = aggregate(schedule)
    return SlotDetail(
        index=index,
        start=schedule.slots[index],
        count=aggregated.counts[index],
        names=names_available_at(schedule.participants, index),
    )


@router.get("/schedules/{schedule_id}/top", response_model=TopSlotsResponse)
async def get_top_slots(
    schedule_id: str, service: Service, limit: int = Query(default=5, ge=1, le=100)
) -> TopSlotsResponse:
    schedule = await _load_schedule(service, schedule_id)
    aggregated = aggregate(schedule)
    return TopSlotsResponse(
        max_count=aggregated.max_count,
        slots=[
            SlotDetail(
                index=idx,
                start=schedule.slots[idx],
                count=count,
                names=names_available_at(aggregated.participants, idx),
            )
            for idx, count in top_slots(aggregated, limit)
        ],
    )


@router.get("/schedules/{schedule_id}/grid", response_model=GridResponse)
async def get_grid(
    schedule_id: str, service: Service, tz: Optional[str] = Query(default=None)
) -> GridResponse:
    schedule = await _load_schedule(service, schedule_id)
    zone_name = (tz or "").strip() or schedule.base_time_zone
    try:
        zone = resolve_zone(zone_name)
    except UnknownTimeZoneError as e:
        raise ValidationError(detail=str(e), time_zone=zone_name)
    rendered = render_grid(schedule.slots, schedule.slot_day_index, schedule.days, schedule.slot_minutes, zone)
    return GridResponse(
        time_zone=zone.key,
        slot_minutes=schedule.slot_minutes,
        days=[
            RenderedDay(
                day=day,
                slots=[
                    RenderedSlot(
                        index=idx,
                        start=schedule.slots[idx],
                        local_start=local.start,
                        local_end=local.end,
                        label=local.label,
                        utc_offset=format_offset(local.offset_minutes),
                    )
                    for idx, local in entries
                ],
            )
            for day, entries in rendered
        ],
    )


@router.get("/schedules/{schedule_id}/participants/{name:path}", response_model=ParticipantLookupResponse)
async def get_participant(schedule_id: str, name: str, service: Service) -> ParticipantLookupResponse:
    logger.info("GET /schedules/%s/participants/%s", schedule_id, name)
    with _schedule_errors(schedule_id):
        participant = await service.get_participant(schedule_id, name)
    return ParticipantLookupResponse(participant=participant)


@router.put("/schedules/{schedule_id}/participants/{name:path}", response_model=ParticipantResponse)
async def upsert_participant(
    schedule_id: str, name: str, req: UpsertParticipantRequest, service: Service
) -> ParticipantResponse:
    participant_name = req.name or name.strip()
    if not participant_name:
        raise ValidationError(detail="Name is required")
    time_zone = req.time_zone or get_settings().schedule.default_time_zone
    logger.info(
        "PUT /schedules/%s/participants/%s tz=%s slots=%d",
        schedule_id, participant_name, time_zone, len(req.availability),
    )
    with _schedule_errors(schedule_id, action="persist participant on schedule"):
        participant, aggregated = await service.upsert_participant(
            schedule_id, participant_name, time_zone, req.availability
        )
    return ParticipantResponse(participant=participant, aggregated=aggregated)


@router.get("/timezones", response_model=TimeZonesResponse)
async def get_time_zones() -> TimeZonesResponse:
    return TimeZonesResponse(time_zones=list_time_zones())
