"""Reconstruct per-room free-time windows from half-hour availability samples."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Callable, Iterable, Mapping, Optional, Protocol

from roombooker.domain.constraints import (
    BookingConfig,
    validate_attendees,
    validate_booking_config,
    validate_booking_time,
)
from roombooker.domain.models import (
    SLOT_STEP_HOURS,
    Room,
    RoomSchedule,
    ScheduledRoom,
    TimeInterval,
)
from roombooker.utils.config import Settings, get_settings
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)


class RoomAvailabilityQuery(Protocol):
    async def find_rooms(
        self,
        attendees: int,
        day: date,
        start_hour: float,
        end_hour: float,
    ) -> list[Room]:
        ...


def operating_slots(config: BookingConfig) -> list[float]:
    """Start hour of every half-hour slot in ``[min_hour, max_hour)``."""
    count = int(round((config.max_hour - config.min_hour) / SLOT_STEP_HOURS))
    return [config.min_hour + index * SLOT_STEP_HOURS for index in range(count)]


def coalesce_slots(slot_hours: list[float]) -> list[TimeInterval]:
    """Merge ascending slot starts into runs, splitting on any missed slot."""
    intervals: list[TimeInterval] = []
    if not slot_hours:
        return intervals

    run_start = slot_hours[0]
    for index, hour in enumerate(slot_hours):
        is_last = index == len(slot_hours) - 1
        if is_last or slot_hours[index + 1] - hour != SLOT_STEP_HOURS:
            intervals.append(TimeInterval(run_start, hour + SLOT_STEP_HOURS))
            if not is_last:
                run_start = slot_hours[index + 1]
    return intervals


def build_room_schedules(
    slots: Mapping[float, Iterable[Room]],
    day: date,
) -> list[ScheduledRoom]:
    """Turn ``{slot_start: rooms free in that slot}`` into scheduled rooms.

    Slots may be given in any order. Rooms come back in the order they are
    first seen when walking slots chronologically; a room never reported
    free is absent from the result.
    """
    rooms_by_id: dict[str, Room] = {}
    free_slots_by_id: dict[str, list[float]] = {}

    for hour in sorted(slots):
        seen_this_slot: set[str] = set()
        for room in slots[hour]:
            if room.room_id in seen_this_slot:
                continue
            seen_this_slot.add(room.room_id)
            rooms_by_id.setdefault(room.room_id, room)
            free_slots_by_id.setdefault(room.room_id, []).append(float(hour))

    scheduled: list[ScheduledRoom] = []
    for room_id, room in rooms_by_id.items():
        schedule = RoomSchedule(date=day)
        for interval in coalesce_slots(free_slots_by_id[room_id]):
            schedule.add_free_time(interval)
        scheduled.append(ScheduledRoom(room=room, schedule=schedule))
    return scheduled


class ScheduleBuilderService:
    """Samples every slot of the operating day and builds room schedules."""

    def __init__(
        self,
        query: RoomAvailabilityQuery,
        settings: Optional[Settings] = None,
        config: Optional[BookingConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = config or self._settings.booking_config()
        validate_booking_config(self._config)
        self._query = query
        self._clock = clock

    @property
    def config(self) -> BookingConfig:
        return self._config

    async def build_schedules(self, attendees: int, day: date) -> list[ScheduledRoom]:
        validate_attendees(attendees, self._config)
        validate_booking_time(
            day,
            self._config.min_hour,
            self._config.min_hour + SLOT_STEP_HOURS,
            self._config,
            now=self._clock(),
        )

        slot_hours = operating_slots(self._config)
        results = await asyncio.gather(
            *(
                self._query.find_rooms(attendees, day, hour, hour + SLOT_STEP_HOURS)
                for hour in slot_hours
            ),
            return_exceptions=True,
        )

        slots: dict[float, list[Room]] = {}
        failed_slots = 0
        for hour, result in zip(slot_hours, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failed_slots += 1
                logger.warning(
                    "Slot availability query failed | date=%s | hour=%s | error=%s",
                    day.isoformat(),
                    hour,
                    result,
                )
                slots[hour] = []
            else:
                slots[hour] = list(result)

        scheduled = build_room_schedules(slots, day)
        logger.info(
            "Room schedules built | date=%s | slots=%s | failed_slots=%s | rooms=%s",
            day.isoformat(),
            len(slot_hours),
            failed_slots,
            len(scheduled),
        )
        return scheduled
