"""
Schedule operations on top of a ScheduleStore.

Writes to one schedule are serialized with a per-schedule lock held across
read, replace, persist and re-aggregate. Different schedules never share a
lock. A lock is dropped once nobody holds or waits for it.
"""

import asyncio
import logging
import secrets
import string
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from typing import Any

from when2tz.models.schedules import Aggregated, Participant, Schedule
from when2tz.scheduling.aggregate import aggregate, sanitize_availability
from when2tz.scheduling.grid import build_slot_grid
from when2tz.scheduling.timezones import resolve_zone
from when2tz.store.base import ScheduleStore

logger = logging.getLogger("when2tz.schedules")

ID_ALPHABET = string.ascii_lowercase + string.digits


class ScheduleNotFoundError(LookupError):
    def __init__(self, schedule_id: str) -> None:
        self.schedule_id = schedule_id
        super().__init__(f"schedule not found: {schedule_id}")


def generate_schedule_id(length: int = 10) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


class ScheduleService:
    def __init__(self, store: ScheduleStore, id_length: int = 10) -> None:
        self.store = store
        self.id_length = id_length
        # schedule id -> [lock, number of holders and waiters]
        self._locks: dict[str, list] = {}

    @asynccontextmanager
    async def _schedule_lock(self, schedule_id: str) -> AsyncIterator[None]:
        entry = self._locks.get(schedule_id)
        if entry is None:
            entry = self._locks[schedule_id] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._locks.pop(schedule_id, None)

    async def _new_id(self) -> str:
        for _ in range(10):
            schedule_id = generate_schedule_id(self.id_length)
            if await self.store.get(schedule_id) is None:
                return schedule_id
        raise RuntimeError("Failed to generate unique schedule ID")

    async def create_schedule(
        self,
        title: str,
        start_date: date,
        end_date: date,
        start_hour: int,
        end_hour: int,
        slot_minutes: int,
        base_time_zone: str,
    ) -> tuple[Schedule, Aggregated]:
        """Build the grid, store the schedule and aggregate its empty roster.

        Arguments are expected to be validated already.
        """
        zone = resolve_zone(base_time_zone)
        grid = build_slot_grid(start_date, end_date, start_hour, end_hour, slot_minutes, zone)
        schedule = Schedule(
            id=await self._new_id(),
            title=title,
            start_date=start_date,
            end_date=end_date,
            start_hour=start_hour,
            end_hour=end_hour,
            slot_minutes=slot_minutes,
            base_time_zone=zone.key,
            slots=grid.slots,
            slot_day_index=grid.slot_day_index,
            days=grid.days,
            participants={},
            created_at=datetime.now(UTC),
        )
        await self.store.put(schedule)
        logger.info(
            "Created schedule id=%s zone=%s days=%d slots=%d",
            schedule.id, schedule.base_time_zone, len(schedule.days), schedule.slot_count,
        )
        return schedule, aggregate(schedule)

    async def get_schedule(self, schedule_id: str) -> Schedule:
        schedule = await self.store.get(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    async def get_schedule_with_aggregate(self, schedule_id: str) -> tuple[Schedule, Aggregated]:
        schedule = await self.get_schedule(schedule_id)
        return schedule, aggregate(schedule)

    async def get_participant(self, schedule_id: str, name: str) -> Participant | None:
        schedule = await self.get_schedule(schedule_id)
        return schedule.participants.get(name)

    async def upsert_participant(
        self,
        schedule_id: str,
        name: str,
        time_zone: str,
        availability: Iterable[Any],
    ) -> tuple[Participant, Aggregated]:
        """Replace ``name``'s record wholesale and return the fresh aggregate.

        The new availability is never merged with the previous one. Indices
        outside the grid are dropped. If the store cannot persist the change
        the error propagates and the stored schedule is left as it was.
        """
        async with self._schedule_lock(schedule_id):
            schedule = await self.get_schedule(schedule_id)
            participant = Participant(
                name=name,
                time_zone=time_zone,
                availability=sanitize_availability(availability, schedule.slot_count),
                updated_at=datetime.now(UTC),
            )
            participants = dict(schedule.participants)
            participants[name] = participant
            updated = schedule.model_copy(update={"participants": participants})
            await self.store.put(updated)
            logger.info(
                "Upserted participant schedule=%s name=%s slots=%d",
                schedule_id, name, len(participant.availability),
            )
            return participant, aggregate(updated)
