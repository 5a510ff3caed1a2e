"""
CourseTorrent client: torrent catalog and tracker engine behind one API.
"""

from __future__ import annotations

import logging
import random

from . import bencode
from .catalog import TorrentCatalog
from .config import ClientConfig
from .models import KnownPeer, ScrapeData, TorrentEvent
from .peers import PeerRegistry
from .statistics import StatisticsAggregator
from .storage import InMemoryStorage, KeyValueStorage
from .tracker import TrackerEngine
from .transport import AiohttpTransport, HttpTransport

logger = logging.getLogger(__name__)


class CourseTorrent:
    """
    A BitTorrent tracker client.

    Loads torrent metainfo, announces to and scrapes the torrent's trackers,
    and keeps the known peers and per-tracker statistics. Every operation on
    one infohash is serialised; different torrents are independent.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        storage: KeyValueStorage | None = None,
        transport: HttpTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client settings, read from the environment when omitted
            storage: Record storage, in-memory when omitted
            transport: HTTP transport, aiohttp when omitted
            rng: Random source for the peer id and tier shuffles
        """
        self.config = config or ClientConfig.from_env()
        self.storage = storage if storage is not None else InMemoryStorage()
        self.transport = transport or AiohttpTransport(user_agent=self.config.user_agent)
        self.peers = PeerRegistry(self.storage)
        self.statistics = StatisticsAggregator(self.storage)
        self.catalog = TorrentCatalog(self.storage, self.peers, self.statistics, self.config)
        self.tracker = TrackerEngine(self.catalog, self.transport, self.config, rng)

    @property
    def peer_id(self) -> bytes:
        return self.tracker.peer_id

    async def load(self, torrent: bytes) -> str:
        """
        Load torrent metainfo.

        Raises:
            FormatError: If ``torrent`` is not a valid metainfo file
            ConflictError: If the infohash is already loaded
        Returns:
            The infohash as 40 lowercase hex characters
        """
        infohash = bencode.info_hash(torrent).hex()
        async with self.catalog.lock(infohash):
            return self.catalog.load(torrent)

    async def unload(self, infohash: str) -> None:
        """
        Raises:
            NotFoundError: If ``infohash`` is not loaded
        """
        infohash = infohash.lower()
        async with self.catalog.lock(infohash):
            self.catalog.unload(infohash)

    async def announces(self, infohash: str) -> list[list[str]]:
        """Announce tiers of a loaded torrent, as currently ordered."""
        infohash = infohash.lower()
        async with self.catalog.lock(infohash):
            return self.catalog.announces(infohash)

    async def announce(
        self,
        infohash: str,
        event: TorrentEvent | str,
        uploaded: int,
        downloaded: int,
        left: int,
    ) -> int:
        """
        Announce to the torrent's trackers.

        Returns:
            The interval in seconds to wait before announcing again
        """
        return await self.tracker.announce(infohash.lower(), TorrentEvent(event), uploaded, downloaded, left)

    async def scrape(self, infohash: str) -> None:
        """Scrape every tracker of the torrent, recording per-tracker results."""
        await self.tracker.scrape(infohash.lower())

    async def invalidate_peer(self, infohash: str, peer: KnownPeer) -> None:
        """Forget ``peer``; does nothing if it is not known."""
        infohash = infohash.lower()
        async with self.catalog.lock(infohash):
            self.catalog.require_loaded(infohash)
            if self.peers.invalidate(infohash, peer):
                logger.debug(f"Invalidated peer {peer.ip}:{peer.port} for {infohash}")

    async def known_peers(self, infohash: str) -> list[KnownPeer]:
        """Known peers in ascending numeric address order, then port."""
        infohash = infohash.lower()
        async with self.catalog.lock(infohash):
            self.catalog.require_loaded(infohash)
            return self.peers.list(infohash)

    async def tracker_stats(self, infohash: str) -> dict[str, ScrapeData]:
        """Latest known statistics per tracker announce URL."""
        infohash = infohash.lower()
        async with self.catalog.lock(infohash):
            self.catalog.require_loaded(infohash)
            return self.statistics.snapshot(infohash)

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()
