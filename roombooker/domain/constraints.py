"""Domain-level validation rules for room booking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from roombooker.domain.models import HOURS_PER_DAY, is_half_hour_aligned


class BookingValidationError(ValueError):
    """Raised when booking inputs are rejected before any remote call."""


@dataclass(frozen=True)
class BookingConfig:
    min_hour: float
    max_hour: float
    max_booking_duration: float
    max_advance_days: int
    min_attendees: int
    max_attendees: int


def validate_booking_config(config: BookingConfig) -> None:
    if not (is_half_hour_aligned(config.min_hour) and is_half_hour_aligned(config.max_hour)):
        raise ValueError("operating hours must be whole or half hours")
    if not 0.0 <= config.min_hour < config.max_hour <= HOURS_PER_DAY:
        raise ValueError("min_hour must be before max_hour and both within the day")
    if config.max_booking_duration <= 0 or not is_half_hour_aligned(config.max_booking_duration):
        raise ValueError("max_booking_duration must be a positive multiple of half an hour")
    if config.max_advance_days < 0:
        raise ValueError("max_advance_days must be >= 0")
    if config.min_attendees <= 0:
        raise ValueError("min_attendees must be > 0")
    if config.max_attendees < config.min_attendees:
        raise ValueError("max_attendees must be >= min_attendees")


def validate_attendees(attendees: int, config: BookingConfig) -> None:
    if not config.min_attendees <= attendees <= config.max_attendees:
        raise BookingValidationError(
            f"attendees must be between {config.min_attendees} and {config.max_attendees}"
        )


def validate_booking_time(
    day: date,
    start_hour: float,
    end_hour: float,
    config: BookingConfig,
    now: datetime,
) -> None:
    """Reject misaligned, out-of-hours, too long, past, or too-distant bookings."""
    if not (is_half_hour_aligned(start_hour) and is_half_hour_aligned(end_hour)):
        raise BookingValidationError(
            "start and end hours must be whole or half hours"
        )

    today = now.date()
    if day < today or (day == today and now.hour >= start_hour):
        raise BookingValidationError("date cannot be in the past")
    if day > today + timedelta(days=config.max_advance_days):
        raise BookingValidationError(
            f"date cannot be more than {config.max_advance_days} days in the future"
        )

    duration = end_hour - start_hour
    if duration <= 0:
        raise BookingValidationError("start time must be before end time")
    if duration > config.max_booking_duration:
        raise BookingValidationError(
            f"room cannot be booked for more than {config.max_booking_duration:g} hours"
        )

    if not (
        config.min_hour <= start_hour <= config.max_hour
        and config.min_hour <= end_hour <= config.max_hour
    ):
        raise BookingValidationError(
            f"start and end times must be between {_format_hour(config.min_hour)} "
            f"and {_format_hour(config.max_hour)} inclusive"
        )


def _format_hour(hour: float) -> str:
    whole = int(hour)
    minutes = int(round((hour - whole) * 60))
    return f"{whole:02d}:{minutes:02d}"
