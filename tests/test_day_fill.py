from __future__ import annotations

import asyncio
from datetime import date, datetime

import pytest

from roombooker.domain.constraints import BookingConfig, BookingValidationError
from roombooker.domain.models import Room, RoomSchedule, ScheduledRoom, TimeInterval
from roombooker.repository.booking_client import BookingServiceError
from roombooker.services.day_fill_service import DayFillService, plan_day


DAY = date(2026, 3, 3)
NOW = datetime(2026, 3, 2, 12, 0)


def _config(**overrides) -> BookingConfig:
    defaults = {
        "min_hour": 9.0,
        "max_hour": 22.0,
        "max_booking_duration": 3.0,
        "max_advance_days": 7,
        "min_attendees": 1,
        "max_attendees": 7,
    }
    defaults.update(overrides)
    return BookingConfig(**defaults)


def _room(room_id: str, *windows: tuple[float, float], capacity: int = 6, day: date = DAY):
    schedule = RoomSchedule(date=day)
    for start, end in windows:
        schedule.add_free_time(TimeInterval(start, end))
    return ScheduledRoom(
        room=Room(room_id=room_id, name=f"Room {room_id}", capacity=capacity),
        schedule=schedule,
    )


def _blocks(plan) -> list[tuple[str, float, float]]:
    return [
        (assignment.room.room_id, assignment.interval.start, assignment.interval.end)
        for assignment in plan.assignments
    ]


class FakeSubmitter:
    def __init__(self, failing_rooms=(), rejecting_rooms=()):
        self.failing_rooms = set(failing_rooms)
        self.rejecting_rooms = set(rejecting_rooms)
        self.calls: list[tuple[str, int, list[datetime]]] = []

    async def book_room(self, room_id, attendees, slots):
        self.calls.append((room_id, attendees, slots))
        if room_id in self.failing_rooms:
            raise BookingServiceError(f"room {room_id} already taken")
        return room_id not in self.rejecting_rooms


def _service(submitter: FakeSubmitter, **overrides) -> DayFillService:
    return DayFillService(submitter=submitter, config=_config(**overrides), clock=lambda: NOW)


# --- plan_day ---

def test_free_rooms_fill_day_in_max_blocks() -> None:
    rooms = [_room(room_id, (9.0, 22.0)) for room_id in "ABCDE"]

    plan = plan_day(rooms, 4, _config())

    assert plan.date == DAY
    assert plan.covered_to == 22.0
    assert plan.is_complete(22.0)
    assert _blocks(plan) == [
        ("A", 9.0, 12.0),
        ("B", 12.0, 15.0),
        ("C", 15.0, 18.0),
        ("D", 18.0, 21.0),
        ("E", 21.0, 22.0),
    ]


def test_single_free_room_covers_only_one_block() -> None:
    plan = plan_day([_room("A", (9.0, 22.0))], 4, _config(max_booking_duration=2.5))

    assert _blocks(plan) == [("A", 9.0, 11.5)]
    assert plan.covered_to == 11.5
    assert not plan.is_complete(22.0)


def test_room_is_used_at_most_once() -> None:
    rooms = [_room("A", (9.0, 22.0)), _room("B", (9.0, 22.0))]

    plan = plan_day(rooms, 4, _config())

    assert _blocks(plan) == [("A", 9.0, 12.0), ("B", 12.0, 15.0)]
    assert plan.covered_to == 15.0
    assert not plan.is_complete(22.0)


def test_earlier_room_wins_ties() -> None:
    first = plan_day([_room("A", (9.0, 12.0)), _room("B", (9.0, 12.0))], 2, _config())
    second = plan_day([_room("B", (9.0, 12.0)), _room("A", (9.0, 12.0))], 2, _config())

    assert first.assignments[0].room.room_id == "A"
    assert second.assignments[0].room.room_id == "B"


def test_block_shrinks_until_a_room_fits() -> None:
    rooms = [_room("A", (9.0, 11.0)), _room("B", (11.0, 22.0))]

    plan = plan_day(rooms, 4, _config())

    assert _blocks(plan) == [("A", 9.0, 11.0), ("B", 11.0, 14.0)]


def test_nothing_free_at_opening_yields_empty_plan() -> None:
    plan = plan_day([_room("A", (10.0, 22.0))], 4, _config())

    assert plan.assignments == []
    assert plan.covered_to == 0.0


def test_touching_windows_are_not_bridged() -> None:
    plan = plan_day([_room("A", (9.0, 10.0), (10.0, 12.0))], 4, _config())

    assert _blocks(plan) == [("A", 9.0, 10.0)]
    assert plan.covered_to == 10.0


def test_rooms_below_capacity_are_skipped() -> None:
    rooms = [_room("small", (9.0, 22.0), capacity=2), _room("big", (9.0, 12.0), capacity=6)]

    plan = plan_day(rooms, 4, _config())

    assert _blocks(plan) == [("big", 9.0, 12.0)]


def test_assignments_never_overlap_or_repeat_rooms() -> None:
    rooms = [
        _room("A", (9.0, 13.0)),
        _room("B", (10.0, 16.5)),
        _room("C", (12.0, 20.0)),
        _room("D", (9.0, 22.0)),
        _room("E", (18.0, 22.0)),
    ]

    plan = plan_day(rooms, 3, _config())

    blocks = _blocks(plan)
    assert len({room_id for room_id, _, _ in blocks}) == len(blocks)
    for (_, _, previous_end), (_, next_start, _) in zip(blocks, blocks[1:]):
        assert previous_end == next_start
    assert all(end - start <= 3.0 for _, start, end in blocks)


def test_short_operating_day_caps_first_block() -> None:
    plan = plan_day([_room("A", (9.0, 22.0))], 4, _config(max_hour=10.0))

    assert _blocks(plan) == [("A", 9.0, 10.0)]
    assert plan.covered_to == 10.0


def test_empty_room_list_plans_nothing() -> None:
    plan = plan_day([], 4, _config())

    assert plan.date is None
    assert plan.assignments == []


def test_room_without_schedule_is_rejected() -> None:
    with pytest.raises(BookingValidationError, match="no schedule"):
        plan_day([Room(room_id="A", name="Room A", capacity=4)], 4, _config())


def test_mismatched_schedule_dates_are_rejected() -> None:
    rooms = [_room("A", (9.0, 22.0)), _room("B", (9.0, 22.0), day=date(2026, 3, 4))]

    with pytest.raises(BookingValidationError, match="same date"):
        plan_day(rooms, 4, _config())


def test_invalid_attendees_are_rejected() -> None:
    with pytest.raises(BookingValidationError):
        plan_day([_room("A", (9.0, 22.0))], 0, _config())


# --- DayFillService ---

def test_fill_day_reports_each_submission_in_order() -> None:
    rooms = [_room(room_id, (9.0, 22.0)) for room_id in "ABCDE"]
    submitter = FakeSubmitter(failing_rooms={"B", "D"})

    outcomes = asyncio.run(_service(submitter).fill_day(rooms, 4))

    assert len(outcomes) == 5
    assert [outcome.assignment.room.room_id for outcome in outcomes] == list("ABCDE")
    assert [outcome.success for outcome in outcomes] == [True, False, True, False, True]
    assert outcomes[1].error == "room B already taken"
    assert outcomes[0].error is None
    assert len(submitter.calls) == 5


def test_fill_day_sends_half_hour_slots() -> None:
    submitter = FakeSubmitter()

    asyncio.run(_service(submitter, max_hour=10.0).fill_day([_room("A", (9.0, 22.0))], 3))

    assert submitter.calls == [
        ("A", 3, [datetime(2026, 3, 3, 9, 0), datetime(2026, 3, 3, 9, 30)]),
    ]


def test_fill_day_treats_false_as_failure() -> None:
    submitter = FakeSubmitter(rejecting_rooms={"A"})

    (outcome,) = asyncio.run(
        _service(submitter, max_hour=12.0).fill_day([_room("A", (9.0, 22.0))], 3)
    )

    assert not outcome.success
    assert outcome.error == "booking service reported failure"


def test_fill_day_dry_run_does_not_submit() -> None:
    submitter = FakeSubmitter()

    rooms = [_room(room_id, (9.0, 22.0)) for room_id in "ABCDE"]

    outcomes = asyncio.run(_service(submitter).fill_day(rooms, 4, dry_run=True))

    assert len(outcomes) == 5
    assert all(outcome.success and not outcome.submitted for outcome in outcomes)
    assert submitter.calls == []


def test_fill_day_rejects_past_schedule_before_submitting() -> None:
    submitter = FakeSubmitter()
    rooms = [_room("A", (9.0, 22.0), day=date(2026, 3, 1))]

    with pytest.raises(BookingValidationError, match="past"):
        asyncio.run(_service(submitter).fill_day(rooms, 4))
    assert submitter.calls == []


def test_book_block_validates_then_submits() -> None:
    submitter = FakeSubmitter()
    service = _service(submitter)

    assert asyncio.run(service.book_block("A", 2, DAY, 14.0, 15.0)) is True
    assert submitter.calls == [
        ("A", 2, [datetime(2026, 3, 3, 14, 0), datetime(2026, 3, 3, 14, 30)]),
    ]

    with pytest.raises(BookingValidationError):
        asyncio.run(service.book_block("A", 2, DAY, 14.0, 18.0))
    assert len(submitter.calls) == 1
