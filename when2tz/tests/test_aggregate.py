from datetime import UTC, date, datetime

import pytest

from when2tz.models.schedules import Participant, Schedule
from when2tz.scheduling.aggregate import (
    aggregate,
    names_available_at,
    sanitize_availability,
    top_slots,
)
from when2tz.scheduling.grid import build_slot_grid


def make_participant(name, availability, time_zone="UTC"):
    return Participant(
        name=name,
        time_zone=time_zone,
        availability=list(availability),
        updated_at=datetime(2024, 3, 1, tzinfo=UTC),
    )


@pytest.fixture
def ten_slot_schedule():
    grid = build_slot_grid(date(2024, 5, 1), date(2024, 5, 1), 0, 10, 60, "UTC")
    return Schedule(
        id="abc123xyz0",
        title="Standup",
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 1),
        start_hour=0,
        end_hour=10,
        slot_minutes=60,
        base_time_zone="UTC",
        slots=grid.slots,
        slot_day_index=grid.slot_day_index,
        days=grid.days,
        created_at=datetime(2024, 4, 1, tzinfo=UTC),
    )


class TestAggregate:
    def test_two_participants(self, ten_slot_schedule):
        participants = {
            "A": make_participant("A", [0, 1, 2]),
            "B": make_participant("B", [1, 2, 3], time_zone="Asia/Tokyo"),
        }

        result = aggregate(ten_slot_schedule, participants)

        assert result.counts == [1, 2, 2, 1, 0, 0, 0, 0, 0, 0]
        assert result.max_count == 2
        assert [p.name for p in result.participants] == ["A", "B"]
        assert names_available_at(participants, 1) == ["A", "B"]
        assert names_available_at(participants, 3) == ["B"]
        assert names_available_at(participants, 9) == []

    def test_uses_schedule_participants_by_default(self, ten_slot_schedule):
        schedule = ten_slot_schedule.model_copy(
            update={"participants": {"A": make_participant("A", [4])}}
        )

        result = aggregate(schedule)

        assert result.counts[4] == 1
        assert result.max_count == 1

    def test_no_participants(self, ten_slot_schedule):
        result = aggregate(ten_slot_schedule, {})

        assert result.counts == [0] * 10
        assert result.max_count == 0
        assert result.participants == []

    def test_participants_without_marks(self, ten_slot_schedule):
        result = aggregate(ten_slot_schedule, {"A": make_participant("A", [])})

        assert result.max_count == 0

    def test_empty_grid(self):
        result = aggregate(0, {"A": make_participant("A", [0, 1])})

        assert result.counts == []
        assert result.max_count == 0

    def test_out_of_range_indices_ignored(self):
        result = aggregate(3, [make_participant("A", [-1, 0, 2, 3, 99])])

        assert result.counts == [1, 0, 1]

    def test_counts_match_membership(self, ten_slot_schedule):
        participants = {
            name: make_participant(name, marks)
            for name, marks in [("A", [0, 5, 9]), ("B", [5]), ("C", [5, 9]), ("D", [])]
        }

        result = aggregate(ten_slot_schedule, participants)

        for i, count in enumerate(result.counts):
            assert count == sum(1 for p in participants.values() if i in p.availability)
        assert result.max_count == max(result.counts)

    def test_idempotent(self, ten_slot_schedule):
        participants = {"A": make_participant("A", [1, 2]), "B": make_participant("B", [2])}

        assert aggregate(ten_slot_schedule, participants) == aggregate(ten_slot_schedule, participants)


class TestTopSlots:
    def test_orders_by_count_then_index(self):
        result = aggregate(10, [make_participant("A", [0, 1, 2]), make_participant("B", [1, 2, 3])])

        assert top_slots(result, limit=3) == [(1, 2), (2, 2), (0, 1)]

    def test_skips_empty_slots(self):
        result = aggregate(5, [make_participant("A", [4])])

        assert top_slots(result) == [(4, 1)]

    def test_nothing_marked(self):
        assert top_slots(aggregate(5, [])) == []


class TestSanitizeAvailability:
    def test_drops_out_of_range(self):
        assert sanitize_availability([15], 10) == []
        assert sanitize_availability([-1, 0, 9, 10], 10) == [0, 9]

    def test_sorts_and_deduplicates(self):
        assert sanitize_availability([3, 1, 3, 2, 1], 10) == [1, 2, 3]

    def test_drops_non_integers(self):
        assert sanitize_availability([3, "4", 2.0, 2.5, True, None, "x", [1]], 10) == [2, 3, 4]

    def test_empty_grid(self):
        assert sanitize_availability([0, 1], 0) == []
