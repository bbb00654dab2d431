"""
Slot grid generation.

A schedule's grid is built once, when the schedule is created, and never
changes afterwards: a slot's position in ``slots`` is the only identifier
participants and aggregations ever use for it.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from .timezones import LocalSlot, civil_to_utc, render_slot, resolve_zone

logger = logging.getLogger("when2tz.grid")


@dataclass(frozen=True)
class SlotGrid:
    slots: list[datetime]
    slot_day_index: list[int]
    days: list[date]


def slots_per_day(start_hour: int, end_hour: int, slot_minutes: int) -> int:
    """Number of whole slots that fit in the daily hour window."""
    if slot_minutes <= 0:
        return 0
    return max(0, (end_hour - start_hour) * 60 // slot_minutes)


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    """Yield civil dates from ``start_date`` to ``end_date`` inclusive."""
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)


def build_slot_grid(
    start_date: date,
    end_date: date,
    start_hour: int,
    end_hour: int,
    slot_minutes: int,
    base_time_zone: ZoneInfo | str,
) -> SlotGrid:
    """
    Build the absolute-time slot grid for a schedule.

    Args:
        start_date: first civil day, inclusive
        end_date: last civil day, inclusive
        start_hour: first hour of the daily window in ``base_time_zone``
        end_hour: hour the daily window ends in ``base_time_zone``
        slot_minutes: length of each slot
        base_time_zone: IANA zone the hours are expressed in

    Returns:
        SlotGrid with ascending UTC ``slots``, the owning day of each slot in
        ``slot_day_index`` and every day of the range in ``days``.

    Range checks on the arguments belong to the caller. A window that holds
    no whole slot yields no slots for that day; the day is still listed.
    """
    zone = resolve_zone(base_time_zone)
    per_day = slots_per_day(start_hour, end_hour, slot_minutes)
    step = timedelta(minutes=slot_minutes)

    slots: list[datetime] = []
    slot_day_index: list[int] = []
    days: list[date] = []

    for day_index, day in enumerate(iter_days(start_date, end_date)):
        days.append(day)
        if per_day == 0:
            continue
        # Only the day's first slot goes through civil time. The rest are
        # spaced in absolute time from it, so a DST change inside the window
        # shifts their wall-clock labels rather than leaving a gap or an
        # overlap in the grid.
        anchor = civil_to_utc(day, start_hour, 0, zone)
        for i in range(per_day):
            slots.append(anchor + i * step)
            slot_day_index.append(day_index)

    logger.debug(
        "Built grid zone=%s days=%d slots=%d per_day=%d",
        zone.key, len(days), len(slots), per_day,
    )
    return SlotGrid(slots=slots, slot_day_index=slot_day_index, days=days)


def group_slots_by_day(
    slots: list[datetime], slot_day_index: list[int], days: list[date]
) -> list[list[tuple[int, datetime]]]:
    """Split the flat grid into per-day lists of ``(index, instant)``."""
    grouped: list[list[tuple[int, datetime]]] = [[] for _ in days]
    for idx, (instant, day_idx) in enumerate(zip(slots, slot_day_index)):
        grouped[day_idx].append((idx, instant))
    return grouped


def render_grid(
    slots: list[datetime],
    slot_day_index: list[int],
    days: list[date],
    slot_minutes: int,
    zone: ZoneInfo | str,
) -> list[tuple[date, list[tuple[int, LocalSlot]]]]:
    """Render every slot of the grid as wall-clock time in ``zone``.

    Days stay those of the base zone; only the labels move, so the same
    indices line up for every viewer.
    """
    tz = resolve_zone(zone)
    rendered = []
    for day, entries in zip(days, group_slots_by_day(slots, slot_day_index, days)):
        rendered.append((day, [(idx, render_slot(instant, tz, slot_minutes)) for idx, instant in entries]))
    return rendered
