"""
Tracker communication for the BitTorrent client.
Handles HTTP/HTTPS announce and scrape with BEP 12 multi-tracker failover.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import random
import string
import urllib.parse
from collections.abc import Iterator
from typing import Any

from . import bencode
from .catalog import TorrentCatalog
from .config import ClientConfig
from .errors import FormatError, TrackerError
from .models import ScrapeUpdate, TorrentEvent
from .peers import parse_response_peers
from .transport import HttpTransport, TransportError

logger = logging.getLogger(__name__)

PEER_ID_PREFIX = b"-CS1000-"
PEER_ID_ALPHABET = string.digits + string.ascii_letters

CONNECTION_FAILED = "Connection failed"
INVALID_RESPONSE = "Invalid tracker response"
NO_TRACKERS = "No trackers available"


def generate_peer_id(seed: str, rng: random.Random | None = None) -> bytes:
    """
    Generate a 20-byte peer ID.

    Format: ``-CS1000-`` + first 6 hex characters of sha1(seed) + 6 random
    characters from [0-9a-zA-Z].

    Args:
        seed: Stable per-install seed
        rng: Random source for the instance suffix
    """
    rng = rng or random.Random()
    install = hashlib.sha1(seed.encode("utf-8")).hexdigest()[:6].encode("ascii")
    suffix = "".join(rng.choice(PEER_ID_ALPHABET) for _ in range(6)).encode("ascii")
    return PEER_ID_PREFIX + install + suffix


def iter_tracker_urls(tiers: list[list[str]]) -> Iterator[tuple[int, str]]:
    """Yield (tier index, url) in BEP 12 order: tiers first to last, URLs left to right."""
    for tier_index, tier in enumerate(tiers):
        for url in tier:
            yield tier_index, url


def scrape_url_for(announce_url: str) -> str | None:
    """
    Derive the scrape URL from an announce URL.

    The last path segment must start with "announce", which is replaced by
    "scrape". Returns None when the tracker does not follow the convention.

    Raises:
        ValueError: If the URL cannot be parsed
    """
    parsed = urllib.parse.urlsplit(announce_url)
    head, _, last = parsed.path.rpartition("/")
    if not last.startswith("announce"):
        return None
    path = f"{head}/scrape{last[len('announce'):]}"
    return urllib.parse.urlunsplit(parsed._replace(path=path))


def with_query(url: str, query: str) -> str:
    """Append ``query`` to the URL's own query string, before any fragment."""
    parsed = urllib.parse.urlsplit(url)
    existing = parsed.query.rstrip("&")
    return urllib.parse.urlunsplit(parsed._replace(query=f"{existing}&{query}" if existing else query))


def _counter(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _reason(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def announce_update(response: dict[str, Any]) -> ScrapeUpdate:
    """Statistics carried by a successful announce response."""
    fields = {
        "interval": _counter(response.get("interval")),
        "seeders": _counter(response.get("complete")),
        "leechers": _counter(response.get("incomplete")),
        "downloaded": _counter(response.get("downloaded")),
    }
    return ScrapeUpdate(failure_reason=None, **{k: v for k, v in fields.items() if v is not None})


def scrape_update(response: dict[str, Any], info_hash: bytes) -> ScrapeUpdate:
    """Statistics for ``info_hash`` in a scrape response's ``files`` dictionary."""
    files = response.get("files")
    entry = files.get(bencode.binary_key(info_hash)) if isinstance(files, dict) else None
    if not isinstance(entry, dict):
        return ScrapeUpdate(failure_reason=None)
    fields = {
        "seeders": _counter(entry.get("complete")),
        "leechers": _counter(entry.get("incomplete")),
        "downloaded": _counter(entry.get("downloaded")),
    }
    return ScrapeUpdate(failure_reason=None, **{k: v for k, v in fields.items() if v is not None})


class TrackerEngine:
    """Announces to and scrapes the trackers of catalogued torrents."""

    def __init__(
        self,
        catalog: TorrentCatalog,
        transport: HttpTransport,
        config: ClientConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            catalog: Catalog owning tiers, peers and statistics
            transport: HTTP transport used for every tracker request
            config: Client settings (port, timeout, peer id seed)
            rng: Random source for the peer id suffix and tier shuffles
        """
        self.catalog = catalog
        self.transport = transport
        self.config = config or catalog.config
        self._rng = rng or random.Random()
        self.peer_id = generate_peer_id(self.config.peer_id_seed, self._rng)

    def _announce_query(
        self, info_hash: bytes, event: TorrentEvent, uploaded: int, downloaded: int, left: int
    ) -> str:
        params: dict[str, Any] = {
            "info_hash": info_hash,
            "peer_id": self.peer_id,
            "port": self.config.port,
            "uploaded": uploaded,
            "downloaded": downloaded,
            "left": left,
            "compact": 1,
        }
        if event is not TorrentEvent.REGULAR:
            params["event"] = event.value
        if self.config.numwant is not None:
            params["numwant"] = self.config.numwant
        return urllib.parse.urlencode(params, quote_via=urllib.parse.quote)

    async def _exchange(self, url: str, query: str) -> tuple[dict[str, Any] | None, str | None]:
        """
        Perform one tracker request.

        An unparseable or non-HTTP URL counts as a connection failure of that
        tracker alone.

        Returns:
            Tuple of (decoded response, None) on success or (None, failure reason)
        """
        try:
            scheme = urllib.parse.urlsplit(url).scheme
            request_url = with_query(url, query)
        except ValueError as e:
            logger.warning(f"Malformed tracker URL {url!r}: {e}")
            return None, CONNECTION_FAILED
        if scheme not in ("http", "https"):
            logger.warning(f"Unsupported tracker protocol: {url}")
            return None, CONNECTION_FAILED

        logger.debug(f"GET {request_url}")
        timeout = self.config.request_timeout
        try:
            response = await asyncio.wait_for(self.transport.get(request_url, timeout), timeout)
        except (TransportError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Tracker request failed: {str(e) or type(e).__name__}")
            return None, CONNECTION_FAILED

        try:
            decoded = bencode.decode(response.body)
        except FormatError:
            decoded = None

        if isinstance(decoded, dict) and "failure reason" in decoded:
            return None, _reason(decoded["failure reason"])
        if not 200 <= response.status < 300:
            logger.warning(f"Tracker returned status {response.status}")
            return None, CONNECTION_FAILED
        if not isinstance(decoded, dict):
            return None, INVALID_RESPONSE
        return decoded, None

    async def announce(
        self,
        infohash: str,
        event: TorrentEvent,
        uploaded: int,
        downloaded: int,
        left: int,
    ) -> int:
        """
        Announce to the torrent's trackers, failing over across tiers.

        A STARTED event shuffles every tier first. The first tracker that
        answers without a failure reason wins: its peers are merged, its
        statistics recorded, and it moves to the front of its tier.

        Returns:
            The announce interval in seconds

        Raises:
            NotFoundError: If the torrent is not loaded
            TrackerError: If every tracker failed; the message is the last failure reason
        """
        async with self.catalog.lock(infohash):
            tiers = self.catalog.announces(infohash)
            if event is TorrentEvent.STARTED:
                for tier in tiers:
                    self._rng.shuffle(tier)
                self.catalog.set_announce_tiers(infohash, tiers)

            query = self._announce_query(bytes.fromhex(infohash), event, uploaded, downloaded, left)
            last_reason = NO_TRACKERS
            for tier_index, url in iter_tracker_urls(tiers):
                response, reason = await self._exchange(url, query)
                if response is None:
                    last_reason = reason or CONNECTION_FAILED
                    logger.warning(f"Announce to {url} failed: {last_reason}")
                    self.catalog.statistics.record_failure(infohash, url, last_reason)
                    continue

                peers = parse_response_peers(response)
                added = self.catalog.peers.merge(infohash, peers)
                stats = self.catalog.statistics.update(infohash, url, announce_update(response))

                tier = tiers[tier_index]
                tier.remove(url)
                tier.insert(0, url)
                self.catalog.set_announce_tiers(infohash, tiers)

                logger.info(f"Announced to {url}: {len(peers)} peers ({added} new), interval {stats.interval}s")
                return stats.interval

        raise TrackerError(last_reason)

    async def scrape(self, infohash: str) -> None:
        """
        Scrape every tracker of the torrent and record the statistics.

        Requests run concurrently; each result is merged under the torrent's
        lock. Tracker failures are recorded, never raised.

        Raises:
            NotFoundError: If the torrent is not loaded
        """
        async with self.catalog.lock(infohash):
            tiers = self.catalog.announces(infohash)
            generation = self.catalog.generation(infohash)

        info_hash = bytes.fromhex(infohash)
        query = urllib.parse.urlencode({"info_hash": info_hash}, quote_via=urllib.parse.quote)
        targets: dict[str, str] = {}
        for _, url in iter_tracker_urls(tiers):
            try:
                scrape_url = scrape_url_for(url)
            except ValueError:
                # Unparseable: the request itself records the failure
                targets.setdefault(url, url)
                continue
            if scrape_url is None:
                logger.debug(f"Tracker does not support scrape: {url}")
                continue
            targets.setdefault(url, scrape_url)

        await asyncio.gather(
            *(
                self._scrape_one(infohash, generation, info_hash, url, scrape_url, query)
                for url, scrape_url in targets.items()
            )
        )

    async def _scrape_one(
        self, infohash: str, generation: int | None, info_hash: bytes, url: str, scrape_url: str, query: str
    ) -> None:
        response, reason = await self._exchange(scrape_url, query)
        async with self.catalog.lock(infohash):
            if self.catalog.generation(infohash) != generation:
                logger.debug(f"Dropping scrape result from {url}: torrent unloaded or reloaded")
                return
            if response is None:
                logger.warning(f"Scrape of {url} failed: {reason}")
                self.catalog.statistics.record_failure(infohash, url, reason or CONNECTION_FAILED)
                return
            self.catalog.statistics.update(infohash, url, scrape_update(response, info_hash))
