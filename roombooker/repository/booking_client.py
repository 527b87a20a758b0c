"""Remote booking-service access; the only module that speaks HTTP outward."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

import httpx

from roombooker.domain.models import Room
from roombooker.utils.config import Settings, get_settings
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)


class BookingServiceError(Exception):
    """Raised when the booking service rejects or fails a request."""


class AuthenticationError(BookingServiceError):
    """Raised when the booking service refuses a login."""


def format_booking_date(day: date) -> str:
    """Render a date the way the find-rooms form expects, e.g. ``20 Dec 2022``."""
    return f"{day.day} {day.strftime('%b')} {day.year}"


def format_clock(day: date, hour: float) -> str:
    moment = datetime.combine(day, time.min) + timedelta(hours=hour)
    return moment.strftime("%H:%M")


def format_slot(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")


def parse_rooms(raw: Any) -> list[Room]:
    if not isinstance(raw, list):
        raise BookingServiceError("find rooms response must be a list of rows")
    rooms: list[Room] = []
    for row in raw:
        if not isinstance(row, (list, tuple)) or len(row) < 3:
            raise BookingServiceError(f"malformed room row: {row!r}")
        rooms.append(Room(room_id=str(row[0]), name=str(row[1]), capacity=int(row[2])))
    return rooms


class BookingClient:
    """Thin async wrapper around the timetable booking endpoints.

    The session cookie set by ``login`` lives in the underlying
    ``httpx.AsyncClient`` cookie jar, so one client instance is one session.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http = http_client or httpx.AsyncClient(
            timeout=self._settings.request_timeout_seconds,
        )
        base_url = self._settings.booking_api_url
        self._login_url = f"{base_url}/login"
        self._find_rooms_url = f"{base_url}/bookingv2/findrooms"
        self._booking_url = f"{base_url}/bookingv2"
        self._logged_in = False

    @property
    def is_logged_in(self) -> bool:
        return self._logged_in

    async def aclose(self) -> None:
        await self._http.aclose()

    async def login(self, username: str, password: str) -> None:
        if self._logged_in:
            raise AuthenticationError("Already logged in.")

        await self._post(
            self._login_url,
            {"guid": username, "password": password, "rememberMe": False},
        )
        self._logged_in = True
        logger.info("Booking service login succeeded | user=%s", username)

    async def find_rooms(
        self,
        attendees: int,
        day: date,
        start_hour: float,
        end_hour: float,
    ) -> list[Room]:
        """Return rooms free for the whole ``[start_hour, end_hour)`` block."""
        payload = await self._post(
            self._find_rooms_url,
            {
                "attendees": str(attendees),
                "bookingDate": format_booking_date(day),
                "startTime": format_clock(day, start_hour),
                "endTime": format_clock(day, end_hour),
                "location": self._settings.booking_location,
            },
        )
        return parse_rooms(payload)

    async def book_room(
        self,
        room_id: str,
        attendees: int,
        slots: list[datetime],
    ) -> bool:
        """Reserve ``room_id`` for every half-hour slot starting at ``slots``."""
        if not slots:
            raise BookingServiceError("at least one slot is required to book a room")
        await self._post(
            self._booking_url,
            {
                "attendees": str(attendees),
                "dates": [format_slot(slot) for slot in slots],
                "locationId": room_id,
            },
        )
        logger.info(
            "Room booked | room_id=%s | first_slot=%s | slots=%s",
            room_id,
            format_slot(slots[0]),
            len(slots),
        )
        return True

    async def _post(self, url: str, body: dict[str, Any]) -> Any:
        try:
            response = await self._http.post(url, json=body)
        except httpx.HTTPError as exc:
            raise BookingServiceError(f"request to {url} failed: {exc}") from exc

        payload: Any = None
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                payload = response.json()
            except ValueError as exc:
                raise BookingServiceError(f"invalid JSON from {url}") from exc
            if isinstance(payload, dict) and payload.get("error"):
                error_type = AuthenticationError if url == self._login_url else BookingServiceError
                raise error_type(str(payload["error"]))

        if response.status_code >= 400:
            raise BookingServiceError(
                f"booking service returned HTTP {response.status_code} for {url}"
            )
        return payload
