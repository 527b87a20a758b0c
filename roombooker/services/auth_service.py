"""Booking-service session management."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from roombooker.repository.booking_client import AuthenticationError
from roombooker.utils.config import Settings, get_settings
from roombooker.utils.logger import get_logger


logger = get_logger(__name__)


class CredentialsNotConfiguredError(AuthenticationError):
    """Raised when BOOKING_USERNAME or BOOKING_PASSWORD is missing."""


class SessionClient(Protocol):
    @property
    def is_logged_in(self) -> bool:
        ...

    async def login(self, username: str, password: str) -> None:
        ...


class AuthService:
    """Logs the booking client in with the configured credentials."""

    def __init__(self, client: SessionClient, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._login_lock = asyncio.Lock()

    @property
    def credentials_configured(self) -> bool:
        return self._settings.credentials_configured

    @property
    def is_logged_in(self) -> bool:
        return self._client.is_logged_in

    async def ensure_session(self) -> None:
        """Log in unless the client already holds a session.

        Concurrent first requests share a single login call.
        """
        if self._client.is_logged_in:
            return
        async with self._login_lock:
            if self._client.is_logged_in:
                return
            if not self.credentials_configured:
                raise CredentialsNotConfiguredError(
                    "BOOKING_USERNAME and BOOKING_PASSWORD must be set to reach the booking service."
                )
            await self._client.login(
                self._settings.booking_username,
                self._settings.booking_password,
            )
