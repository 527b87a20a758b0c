"""FastAPI application bootstrap and lifecycle wiring.

Run directly to serve the API:

    python -m roombooker.main

or through uvicorn:

    uvicorn roombooker.main:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI

from roombooker.controllers.booking_controller import router as booking_router
from roombooker.repository.booking_client import BookingClient, BookingServiceError
from roombooker.services.auth_service import AuthService
from roombooker.services.day_fill_service import DayFillService
from roombooker.services.schedule_builder import ScheduleBuilderService
from roombooker.utils.config import Settings, get_settings
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)

HOST = "127.0.0.1"
PORT = 8000


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the app; every service is reachable from ``app.state``."""
    settings = settings or get_settings()
    booking_client = BookingClient(http_client=http_client, settings=settings)
    auth_service = AuthService(client=booking_client, settings=settings)
    schedule_builder = ScheduleBuilderService(query=booking_client, settings=settings)
    day_fill_service = DayFillService(submitter=booking_client, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await startup(app)
        yield
        await booking_client.aclose()
        logger.info("Booking client closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(booking_router)

    app.state.settings = settings
    app.state.booking_client = booking_client
    app.state.auth_service = auth_service
    app.state.schedule_builder = schedule_builder
    app.state.day_fill_service = day_fill_service

    return app


async def startup(app: FastAPI) -> None:
    """Open the booking-service session eagerly when credentials are present."""
    auth_service: AuthService = app.state.auth_service
    if not auth_service.credentials_configured:
        logger.warning("Booking credentials not configured; login deferred to first request")
        return
    try:
        await auth_service.ensure_session()
    except BookingServiceError as exc:
        logger.error("Booking service login failed at startup | error=%s", exc)
        return
    logger.info("System startup completed")


app = create_app()


if __name__ == "__main__":
    uvicorn.run("roombooker.main:app", host=HOST, port=PORT, log_level="info")
