"""Shared fixtures: torrent builders and a scripted tracker transport."""

from __future__ import annotations

import asyncio
import random
import socket
import struct
from typing import Any

import pytest

from coursetorrent import bencode
from coursetorrent.client import CourseTorrent
from coursetorrent.config import ClientConfig
from coursetorrent.transport import HttpResponse, TransportError

INFO = {
    "name": b"test.iso",
    "piece length": 16384,
    "pieces": b"01234567890123456789",
    "length": 1024,
}


def make_torrent(
    announce: str | None = "http://tracker.test/announce",
    announce_list: list[list[str]] | None = None,
    info: dict[str, Any] | None = None,
) -> bytes:
    """Build bencoded torrent file contents."""
    data: dict[str, Any] = {"info": info if info is not None else dict(INFO)}
    if announce is not None:
        data["announce"] = announce.encode()
    if announce_list is not None:
        data["announce-list"] = [[url.encode() for url in tier] for tier in announce_list]
    return bencode.encode(data)


def compact_peers(*peers: tuple[str, int]) -> bytes:
    return b"".join(socket.inet_aton(ip) + struct.pack(">H", port) for ip, port in peers)


def tracker_response(**fields: Any) -> HttpResponse:
    """A 200 response carrying a bencoded dictionary (keys with spaces via dict unpacking)."""
    return HttpResponse(status=200, body=bencode.encode(fields))


def failure_response(reason: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=bencode.encode({"failure reason": reason.encode()}))


HANG = object()


class Gated:
    """Outcome that answers with ``response`` only once ``release`` is set."""

    def __init__(self, response: HttpResponse) -> None:
        self.response = response
        self.release = asyncio.Event()


class FakeTransport:
    """
    Scripted transport keyed by URL without query string.

    Each route holds a list of outcomes consumed in order (the last one
    repeats): an HttpResponse, an exception to raise, HANG to never answer,
    or a Gated response held back until released.
    Unknown URLs raise TransportError.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[str] = []

    def add(self, url: str, *outcomes: Any) -> None:
        self.routes.setdefault(url, []).extend(outcomes)

    def requested(self, base_url: str) -> list[str]:
        return [u for u in self.requests if u.split("?", 1)[0] == base_url]

    async def get(self, url: str, timeout: float) -> HttpResponse:
        self.requests.append(url)
        outcomes = self.routes.get(url.split("?", 1)[0])
        if not outcomes:
            raise TransportError(f"Connection refused: {url}")
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if outcome is HANG:
            await asyncio.sleep(3600)
        if isinstance(outcome, Gated):
            await outcome.release.wait()
            outcome = outcome.response
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(request_timeout=0.5, peer_id_seed="123456789")


@pytest.fixture
def client(config: ClientConfig, transport: FakeTransport) -> CourseTorrent:
    return CourseTorrent(config=config, transport=transport, rng=random.Random(42))
