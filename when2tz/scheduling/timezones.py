"""Time zone resolution and civil-time conversion.

All instants handled by the scheduling core are timezone-aware UTC
``datetime`` objects. Zone lookups go through the IANA database shipped
with :mod:`zoneinfo` (backed by the ``tzdata`` package where the host has
no system database).
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones


class UnknownTimeZoneError(ValueError):
    """Raised when a zone name is empty or not in the zone database."""


@lru_cache(maxsize=512)
def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise UnknownTimeZoneError(f"unknown time zone: {name}") from e


def resolve_zone(zone: ZoneInfo | str) -> ZoneInfo:
    """Return a ``ZoneInfo`` for an IANA name, passing ``ZoneInfo`` through."""
    if isinstance(zone, ZoneInfo):
        return zone
    name = (zone or "").strip()
    if not name:
        raise UnknownTimeZoneError("time zone must not be empty")
    return _load_zone(name)


def is_valid_time_zone(name: str) -> bool:
    try:
        resolve_zone(name)
    except UnknownTimeZoneError:
        return False
    return True


def list_time_zones() -> list[str]:
    return sorted(available_timezones())


def utc_offset_minutes(instant: datetime, zone: ZoneInfo | str) -> int:
    """UTC offset of ``zone`` at ``instant``, in minutes east of UTC.

    The instant's wall-clock fields in the zone are reinterpreted as if they
    were UTC; the distance between that fake instant and the real one is the
    offset. Exact for any instant the zone database covers.

    Offsets with a seconds part (local mean time before a zone adopted
    standard time, such as New York's -4:56:02 before 1883) are floored to
    the whole minute below, so -4:56:02 reads as -297.
    """
    if instant.tzinfo is None:
        raise ValueError("instant must be timezone-aware")
    local = instant.astimezone(resolve_zone(zone))
    as_utc = local.replace(tzinfo=UTC)
    return int((as_utc - instant).total_seconds() // 60)


def civil_to_utc(day: date, hour: int, minute: int, zone: ZoneInfo | str) -> datetime:
    """Resolve a wall-clock time on ``day`` in ``zone`` to a UTC instant.

    The offset is looked up for that date, not for now. Wall times that do
    not exist (the hour skipped when clocks spring forward) are read with
    the offset in force before the gap, so 02:30 on a spring-forward night
    lands on 03:30 daylight time. Wall times that occur twice resolve to the
    first occurrence.
    """
    local = datetime.combine(day, time(hour, minute), tzinfo=resolve_zone(zone))
    return local.astimezone(UTC)


@dataclass(frozen=True)
class LocalSlot:
    """A slot instant rendered as wall-clock time in one zone."""

    start: datetime
    end: datetime
    local_date: date
    label: str
    offset_minutes: int


def render_slot(instant: datetime, zone: ZoneInfo | str, slot_minutes: int) -> LocalSlot:
    tz = resolve_zone(zone)
    start = instant.astimezone(tz)
    end = (instant + timedelta(minutes=slot_minutes)).astimezone(tz)
    return LocalSlot(
        start=start,
        end=end,
        local_date=start.date(),
        label=start.strftime("%H:%M"),
        offset_minutes=utc_offset_minutes(instant, tz),
    )


def format_offset(minutes: int) -> str:
    """Format an offset in minutes as ``UTC+05:30`` / ``UTC-04:00``."""
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"UTC{sign}{hours:02d}:{mins:02d}"
