"""Domain models for room availability and day-long booking plans."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional


SLOT_STEP_HOURS = 0.5
HOURS_PER_DAY = 24.0


def is_half_hour_aligned(hour: float) -> bool:
    return float(hour * 2).is_integer()


@dataclass(frozen=True)
class TimeInterval:
    """Half-open block of the day ``[start, end)`` in fractional hours."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if not (is_half_hour_aligned(self.start) and is_half_hour_aligned(self.end)):
            raise ValueError("interval bounds must be whole or half hours")
        if not 0.0 <= self.start < HOURS_PER_DAY:
            raise ValueError(f"interval start {self.start} is outside the day")
        if not 0.0 < self.end <= HOURS_PER_DAY:
            raise ValueError(f"interval end {self.end} is outside the day")
        if self.start >= self.end:
            raise ValueError("interval start must be before end")

    @property
    def duration(self) -> float:
        return self.end - self.start

    def half_hour_starts(self) -> list[float]:
        slots = int(round(self.duration / SLOT_STEP_HOURS))
        return [self.start + index * SLOT_STEP_HOURS for index in range(slots)]


@dataclass
class RoomSchedule:
    """Free-time windows of one room on one day.

    Windows are kept as recorded: two windows that touch are still two
    windows, and a block is only free when it fits inside one of them.
    """

    date: date
    free_times: list[TimeInterval] = field(default_factory=list)

    def add_free_time(self, interval: TimeInterval) -> None:
        self.free_times.append(interval)

    def is_free_at(self, point: float) -> bool:
        return any(
            interval.start <= point <= interval.end for interval in self.free_times
        )

    def is_free_between(self, start: float, end: float) -> bool:
        return any(
            interval.start <= start and end <= interval.end
            for interval in self.free_times
        )


def half_hour_datetimes(day: date, interval: TimeInterval) -> list[datetime]:
    """Start of every half-hour slot of ``interval`` on ``day``."""
    midnight = datetime.combine(day, datetime.min.time())
    return [midnight + timedelta(hours=hour) for hour in interval.half_hour_starts()]


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    capacity: int


@dataclass(frozen=True)
class ScheduledRoom:
    """A room annotated with its free-time schedule for a single day."""

    room: Room
    schedule: RoomSchedule

    @property
    def room_id(self) -> str:
        return self.room.room_id

    @property
    def name(self) -> str:
        return self.room.name

    @property
    def capacity(self) -> int:
        return self.room.capacity


@dataclass(frozen=True)
class BookingAssignment:
    room: Room
    date: date
    interval: TimeInterval

    def slot_datetimes(self) -> list[datetime]:
        return half_hour_datetimes(self.date, self.interval)


@dataclass(frozen=True)
class BookingOutcome:
    assignment: BookingAssignment
    success: bool
    submitted: bool = True
    error: Optional[str] = None


@dataclass(frozen=True)
class DayPlan:
    date: Optional[date]
    assignments: list[BookingAssignment]
    covered_to: float

    def is_complete(self, max_hour: float) -> bool:
        return self.covered_to == max_hour
