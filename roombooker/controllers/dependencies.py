"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from roombooker.repository.booking_client import AuthenticationError, BookingServiceError
from roombooker.services.auth_service import AuthService
from roombooker.services.day_fill_service import DayFillService
from roombooker.services.schedule_builder import ScheduleBuilderService


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    return _service_from_state(request, "auth_service", "Auth service")


def get_schedule_builder(request: Request) -> ScheduleBuilderService:
    return _service_from_state(request, "schedule_builder", "Schedule builder")


def get_day_fill_service(request: Request) -> DayFillService:
    return _service_from_state(request, "day_fill_service", "Day fill service")


async def require_session(auth_service: AuthService = Depends(get_auth_service)) -> None:
    try:
        await auth_service.ensure_session()
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except BookingServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
