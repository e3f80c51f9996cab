"""
Login collaborator.

Only a simulated implementation exists: it waits a fixed delay and accepts
any non-empty credentials. A real backend plugs in behind ``Authenticator``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

from app.schemas.auth import LoginResponse

logger = logging.getLogger("crypto_prices.auth")


class AuthenticationError(Exception):
    code = "authentication_failed"


class Authenticator(Protocol):
    async def authenticate(self, username: str, password: str) -> LoginResponse:
        ...


class SimulatedAuthenticator:
    def __init__(
        self,
        delay_s: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.delay_s = delay_s
        self._sleep = sleep

    async def authenticate(self, username: str, password: str) -> LoginResponse:
        if not username or not password:
            raise AuthenticationError("Username and password are required")

        await self._sleep(self.delay_s)
        logger.info("simulated login | user=%s", username)
        return LoginResponse(authenticated=True, username=username)
