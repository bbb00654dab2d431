"""
Scheduling core: slot grid generation and availability aggregation.
"""

from .aggregate import aggregate, names_available_at, sanitize_availability, top_slots
from .grid import SlotGrid, build_slot_grid, render_grid, slots_per_day
from .timezones import (
    UnknownTimeZoneError,
    civil_to_utc,
    list_time_zones,
    render_slot,
    resolve_zone,
    utc_offset_minutes,
)

__all__ = [
    "SlotGrid",
    "UnknownTimeZoneError",
    "aggregate",
    "build_slot_grid",
    "civil_to_utc",
    "list_time_zones",
    "names_available_at",
    "render_grid",
    "render_slot",
    "resolve_zone",
    "sanitize_availability",
    "slots_per_day",
    "top_slots",
    "utc_offset_minutes",
]
