"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from roombooker.domain.constraints import BookingConfig


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    booking_api_url: str
    booking_username: str
    booking_password: str
    booking_location: str
    request_timeout_seconds: float
    min_booking_hour: float
    max_booking_hour: float
    max_booking_duration_hours: float
    max_booking_advance_days: int
    min_attendees: int
    max_attendees: int

    @property
    def credentials_configured(self) -> bool:
        return bool(self.booking_username and self.booking_password)

    def booking_config(self) -> BookingConfig:
        return BookingConfig(
            min_hour=self.min_booking_hour,
            max_hour=self.max_booking_hour,
            max_booking_duration=self.max_booking_duration_hours,
            max_advance_days=self.max_booking_advance_days,
            min_attendees=self.min_attendees,
            max_attendees=self.max_attendees,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Room Booker"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        booking_api_url=os.getenv(
            "BOOKING_API_URL",
            "https://frontdoor.spa.gla.ac.uk/timetable",
        ).rstrip("/"),
        booking_username=os.getenv("BOOKING_USERNAME", ""),
        booking_password=os.getenv("BOOKING_PASSWORD", ""),
        booking_location=os.getenv("BOOKING_LOCATION", "ALL"),
        request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", 10.0),
        min_booking_hour=_env_float("MIN_BOOKING_HOUR", 9.0),
        max_booking_hour=_env_float("MAX_BOOKING_HOUR", 22.0),
        max_booking_duration_hours=_env_float("MAX_BOOKING_DURATION_HOURS", 3.0),
        max_booking_advance_days=_env_int("MAX_BOOKING_ADVANCE_DAYS", 7),
        min_attendees=_env_int("MIN_ATTENDEES", 1),
        max_attendees=_env_int("MAX_ATTENDEES", 7),
    )
