"""HTTP controller layer for room schedules and day-long bookings."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from roombooker.controllers.dependencies import (
    get_day_fill_service,
    get_schedule_builder,
    require_session,
)
from roombooker.domain.constraints import BookingValidationError
from roombooker.domain.models import BookingOutcome, ScheduledRoom
from roombooker.repository.booking_client import AuthenticationError, BookingServiceError
from roombooker.services.day_fill_service import DayFillService
from roombooker.services.schedule_builder import ScheduleBuilderService
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["booking"])


class RoomSchedulesRequest(BaseModel):
    attendees: int = Field(gt=0)
    date: date


class FreeTimeResponse(BaseModel):
    start: float = Field(ge=0.0, lt=24.0)
    end: float = Field(gt=0.0, le=24.0)


class RoomScheduleResponse(BaseModel):
    room_id: str
    name: str
    capacity: int = Field(ge=0)
    date: date
    free_times: list[FreeTimeResponse]


class RoomSchedulesResponse(BaseModel):
    rooms: list[RoomScheduleResponse]


class FillDayRequest(BaseModel):
    attendees: int = Field(gt=0)
    date: date
    dry_run: bool = False


class BookingOutcomeResponse(BaseModel):
    room_id: str
    room_name: str
    start: float
    end: float
    success: bool
    submitted: bool
    error: str | None = None


class FillDayResponse(BaseModel):
    covered_to: float
    complete: bool
    bookings: list[BookingOutcomeResponse]


class BookRoomRequest(BaseModel):
    """Single block booking; hours are fractional, e.g. 9.5 for 09:30."""

    room_id: str = Field(min_length=1)
    attendees: int = Field(gt=0)
    date: date
    start_hour: float = Field(ge=0.0, lt=24.0)
    end_hour: float = Field(gt=0.0, le=24.0)

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_half_hour(cls, value: float) -> float:
        if not float(value * 2).is_integer():
            raise ValueError("hours must be whole or half hours")
        return value


class BookRoomResponse(BaseModel):
    success: bool


def _schedule_to_response(room: ScheduledRoom) -> RoomScheduleResponse:
    return RoomScheduleResponse(
        room_id=room.room_id,
        name=room.name,
        capacity=room.capacity,
        date=room.schedule.date,
        free_times=[
            FreeTimeResponse(start=interval.start, end=interval.end)
            for interval in room.schedule.free_times
        ],
    )


def _outcome_to_response(outcome: BookingOutcome) -> BookingOutcomeResponse:
    assignment = outcome.assignment
    return BookingOutcomeResponse(
        room_id=assignment.room.room_id,
        room_name=assignment.room.name,
        start=assignment.interval.start,
        end=assignment.interval.end,
        success=outcome.success,
        submitted=outcome.submitted,
        error=outcome.error,
    )


def _http_error(exc: Exception, action: str) -> HTTPException:
    if isinstance(exc, BookingValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, BookingServiceError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    logger.exception("Unexpected failure | action=%s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/room_schedules",
    response_model=RoomSchedulesResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_session)],
)
async def room_schedules(
    payload: RoomSchedulesRequest,
    builder: ScheduleBuilderService = Depends(get_schedule_builder),
) -> RoomSchedulesResponse:
    """Return every room's free-time windows for the requested day."""
    try:
        rooms = await builder.build_schedules(payload.attendees, payload.date)
    except Exception as exc:
        raise _http_error(exc, "build room schedules") from exc
    return RoomSchedulesResponse(rooms=[_schedule_to_response(room) for room in rooms])


@router.post(
    "/fill_day",
    response_model=FillDayResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_session)],
)
async def fill_day(
    payload: FillDayRequest,
    builder: ScheduleBuilderService = Depends(get_schedule_builder),
    service: DayFillService = Depends(get_day_fill_service),
) -> FillDayResponse:
    """Build schedules, then book rooms back to back across the operating day."""
    try:
        rooms = await builder.build_schedules(payload.attendees, payload.date)
        outcomes = await service.fill_day(rooms, payload.attendees, dry_run=payload.dry_run)
    except Exception as exc:
        raise _http_error(exc, "fill day") from exc

    covered_to = outcomes[-1].assignment.interval.end if outcomes else 0.0
    return FillDayResponse(
        covered_to=covered_to,
        complete=covered_to == service.config.max_hour,
        bookings=[_outcome_to_response(outcome) for outcome in outcomes],
    )


@router.post(
    "/book_room",
    response_model=BookRoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_session)],
)
async def book_room(
    payload: BookRoomRequest,
    service: DayFillService = Depends(get_day_fill_service),
) -> BookRoomResponse:
    try:
        success = await service.book_block(
            payload.room_id,
            payload.attendees,
            payload.date,
            payload.start_hour,
            payload.end_hour,
        )
    except Exception as exc:
        raise _http_error(exc, "book room") from exc
    return BookRoomResponse(success=success)
