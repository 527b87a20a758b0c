"""Greedy day-filling: chain rooms so a group holds one from opening to close."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Callable, Optional, Protocol, Sequence, Union

from roombooker.domain.constraints import (
    BookingConfig,
    BookingValidationError,
    validate_attendees,
    validate_booking_config,
    validate_booking_time,
)
from roombooker.domain.models import (
    SLOT_STEP_HOURS,
    BookingAssignment,
    BookingOutcome,
    DayPlan,
    Room,
    ScheduledRoom,
    TimeInterval,
    half_hour_datetimes,
)
from roombooker.utils.config import Settings, get_settings
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)


class BookingSubmitter(Protocol):
    async def book_room(
        self,
        room_id: str,
        attendees: int,
        slots: list[datetime],
    ) -> bool:
        ...


def _require_schedules(rooms: Sequence[Union[Room, ScheduledRoom]]) -> list[ScheduledRoom]:
    scheduled: list[ScheduledRoom] = []
    for room in rooms:
        if not isinstance(room, ScheduledRoom):
            raise BookingValidationError(f"room {room.room_id} has no schedule")
        scheduled.append(room)

    dates = {room.schedule.date for room in scheduled}
    if len(dates) > 1:
        raise BookingValidationError(
            "all room schedules must be for the same date, got "
            + ", ".join(sorted(day.isoformat() for day in dates))
        )
    return scheduled


def _first_free_index(pool: list[ScheduledRoom], start: float, end: float) -> Optional[int]:
    for index, room in enumerate(pool):
        if room.schedule.is_free_between(start, end):
            return index
    return None


def plan_day(
    rooms: Sequence[Union[Room, ScheduledRoom]],
    attendees: int,
    config: BookingConfig,
) -> DayPlan:
    """Greedily cover ``[min_hour, max_hour)`` with at most one block per room.

    At each position the longest block up to ``max_booking_duration`` that
    fits entirely in one room's free window wins, the earliest room in input
    order breaking ties. When not even a half-hour block fits, planning stops
    and the remainder of the day stays uncovered.
    """
    validate_attendees(attendees, config)
    scheduled = _require_schedules(rooms)
    day = scheduled[0].schedule.date if scheduled else None

    pool = [room for room in scheduled if room.capacity >= attendees]
    assignments: list[BookingAssignment] = []
    current_hour = config.min_hour
    current_duration = min(config.max_hour - current_hour, config.max_booking_duration)
    covered_to = 0.0

    while covered_to != config.max_hour:
        candidate_end = current_hour + current_duration
        index = _first_free_index(pool, current_hour, candidate_end)
        if index is None:
            current_duration -= SLOT_STEP_HOURS
            if current_duration <= 0:
                logger.info(
                    "Day fill stopped early | date=%s | uncovered_from=%s",
                    day,
                    current_hour,
                )
                break
            continue

        room = pool.pop(index)
        assignments.append(
            BookingAssignment(
                room=room.room,
                date=room.schedule.date,
                interval=TimeInterval(current_hour, candidate_end),
            )
        )
        covered_to = candidate_end
        current_hour = candidate_end
        current_duration = min(config.max_hour - current_hour, config.max_booking_duration)

    return DayPlan(date=day, assignments=assignments, covered_to=covered_to)


class DayFillService:
    """Plans a full-day booking and submits every block to the booking service."""

    def __init__(
        self,
        submitter: BookingSubmitter,
        settings: Optional[Settings] = None,
        config: Optional[BookingConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = config or self._settings.booking_config()
        validate_booking_config(self._config)
        self._submitter = submitter
        self._clock = clock

    @property
    def config(self) -> BookingConfig:
        return self._config

    def plan_day(
        self,
        rooms: Sequence[Union[Room, ScheduledRoom]],
        attendees: int,
    ) -> DayPlan:
        plan = plan_day(rooms, attendees, self._config)
        logger.info(
            "Day plan computed | date=%s | assignments=%s | covered_to=%s | complete=%s",
            plan.date,
            len(plan.assignments),
            plan.covered_to,
            plan.is_complete(self._config.max_hour),
        )
        return plan

    async def fill_day(
        self,
        rooms: Sequence[Union[Room, ScheduledRoom]],
        attendees: int,
        *,
        dry_run: bool = False,
    ) -> list[BookingOutcome]:
        """Plan the day and book every block, reporting each block separately."""
        plan = self.plan_day(rooms, attendees)
        now = self._clock()
        for assignment in plan.assignments:
            validate_booking_time(
                assignment.date,
                assignment.interval.start,
                assignment.interval.end,
                self._config,
                now=now,
            )

        if dry_run:
            return [
                BookingOutcome(assignment=assignment, success=True, submitted=False)
                for assignment in plan.assignments
            ]

        results = await asyncio.gather(
            *(
                self._submitter.book_room(
                    assignment.room.room_id,
                    attendees,
                    assignment.slot_datetimes(),
                )
                for assignment in plan.assignments
            ),
            return_exceptions=True,
        )

        outcomes: list[BookingOutcome] = []
        for assignment, result in zip(plan.assignments, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                error: Optional[str] = str(result) or type(result).__name__
            elif result is False:
                error = "booking service reported failure"
            else:
                error = None

            if error is not None:
                logger.warning(
                    "Booking submission failed | room_id=%s | start=%s | end=%s | error=%s",
                    assignment.room.room_id,
                    assignment.interval.start,
                    assignment.interval.end,
                    error,
                )
            outcomes.append(
                BookingOutcome(assignment=assignment, success=error is None, error=error)
            )

        logger.info(
            "Day fill submitted | date=%s | bookings=%s | failed=%s",
            plan.date,
            len(outcomes),
            sum(1 for outcome in outcomes if not outcome.success),
        )
        return outcomes

    async def book_block(
        self,
        room_id: str,
        attendees: int,
        day: date,
        start_hour: float,
        end_hour: float,
    ) -> bool:
        """Book a single block directly, bypassing day planning."""
        validate_attendees(attendees, self._config)
        validate_booking_time(day, start_hour, end_hour, self._config, now=self._clock())
        slots = half_hour_datetimes(day, TimeInterval(start_hour, end_hour))
        return await self._submitter.book_room(room_id, attendees, slots)
