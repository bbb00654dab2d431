"""
Availability aggregation.

Counts are always recomputed from the current participant records; nothing
here caches or updates counts incrementally.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from when2tz.models.schedules import Aggregated, Participant, Schedule


def _participant_list(participants: Mapping[str, Participant] | Iterable[Participant]) -> list[Participant]:
    if isinstance(participants, Mapping):
        return list(participants.values())
    return list(participants)


def aggregate(
    schedule: Schedule | int,
    participants: Mapping[str, Participant] | Iterable[Participant] | None = None,
) -> Aggregated:
    """
    Count, per slot index, how many participants marked it.

    Args:
        schedule: the schedule, or just its slot count
        participants: name -> participant mapping (or a plain iterable);
            defaults to the schedule's own participants

    Returns:
        Aggregated with ``counts`` parallel to the grid, ``max_count``
        (0 when nothing is marked) and the participants in insertion order.

    Indices outside ``[0, N)`` are skipped instead of raising.
    """
    if isinstance(schedule, Schedule):
        slot_count = schedule.slot_count
        if participants is None:
            participants = schedule.participants
    else:
        slot_count = schedule
    members = _participant_list(participants or {})

    counts = [0] * slot_count
    for p in members:
        for idx in p.availability:
            if 0 <= idx < slot_count:
                counts[idx] += 1

    return Aggregated(
        counts=counts,
        max_count=max(counts, default=0),
        participants=members,
    )


def names_available_at(
    participants: Mapping[str, Participant] | Iterable[Participant], index: int
) -> list[str]:
    """Names of participants who marked ``index``, in insertion order."""
    return [p.name for p in _participant_list(participants) if index in p.availability]


def top_slots(aggregated: Aggregated, limit: int = 5) -> list[tuple[int, int]]:
    """Best ``(index, count)`` pairs: most participants first, earlier slot on ties."""
    pairs = [(idx, count) for idx, count in enumerate(aggregated.counts) if count > 0]
    pairs.sort(key=lambda pair: (-pair[1], pair[0]))
    return pairs[:limit]


def _as_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def sanitize_availability(indices: Iterable[Any], slot_count: int) -> list[int]:
    """Keep only integer indices in ``[0, slot_count)``, sorted and unique.

    Anything else is dropped silently; a partly invalid submission still
    stores its valid part.
    """
    valid = set()
    for value in indices:
        idx = _as_index(value)
        if idx is not None and 0 <= idx < slot_count:
            valid.add(idx)
    return sorted(valid)
