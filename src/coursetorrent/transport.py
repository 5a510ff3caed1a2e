"""
HTTP transport used to reach trackers.

The tracker engine depends only on the ``HttpTransport`` protocol; the
aiohttp implementation below is the default.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

import aiohttp
from yarl import URL


class TransportError(Exception):
    """Raised when a request could not be completed (connection, timeout, scheme)."""

    pass


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes


class HttpTransport(Protocol):
    async def get(self, url: str, timeout: float) -> HttpResponse:
        """Issue a GET for an already percent-encoded URL."""
        ...


class AiohttpTransport:
    """HTTP/HTTPS transport backed by a shared aiohttp session."""

    def __init__(self, user_agent: str | None = None) -> None:
        self.user_agent = user_agent
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def get(self, url: str, timeout: float) -> HttpResponse:
        try:
            parsed = URL(url, encoded=True)
        except ValueError as e:
            raise TransportError(f"Malformed tracker URL: {url}") from e
        if parsed.scheme not in ("http", "https"):
            raise TransportError(f"Unsupported tracker protocol: {parsed.scheme or url}")

        session = await self._get_session()
        try:
            async with session.get(parsed, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                body = await response.read()
                return HttpResponse(status=response.status, body=body)
        except (TimeoutError, asyncio.TimeoutError) as e:
            raise TransportError("Tracker request timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"HTTP tracker error: {e}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
