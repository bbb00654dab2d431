from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Participant(CamelModel):
    name: str
    time_zone: str = "UTC"
    availability: list[int] = Field(default_factory=list)
    updated_at: datetime


class Schedule(CamelModel):
    id: str
    title: str
    start_date: date
    end_date: date
    start_hour: int
    end_hour: int
    slot_minutes: int
    base_time_zone: str
    slots: list[datetime]
    slot_day_index: list[int]
    days: list[date]
    participants: dict[str, Participant] = Field(default_factory=dict)
    created_at: datetime

    @property
    def slot_count(self) -> int:
        return len(self.slots)


class Aggregated(CamelModel):
    counts: list[int]
    max_count: int
    participants: list[Participant]


class ScheduleResponse(CamelModel):
    schedule: Schedule
    aggregated: Aggregated


class ParticipantLookupResponse(CamelModel):
    participant: Participant | None = None


class ParticipantResponse(CamelModel):
    participant: Participant
    aggregated: Aggregated


class SlotDetail(CamelModel):
    index: int
    start: datetime
    count: int
    names: list[str]


class TopSlotsResponse(CamelModel):
    max_count: int
    slots: list[SlotDetail]


class RenderedSlot(CamelModel):
    index: int
    start: datetime
    local_start: datetime
    local_end: datetime
    label: str
    utc_offset: str


class RenderedDay(CamelModel):
    day: date
    slots: list[RenderedSlot]


class GridResponse(CamelModel):
    time_zone: str
    slot_minutes: int
    days: list[RenderedDay]


class TimeZonesResponse(CamelModel):
    time_zones: list[str]
