"""
Torrent catalog: the lifecycle of loaded torrents and their announce tiers.

Each infohash moves ABSENT -> LOADED -> UNLOADED -> LOADED. The torrent
record, the announce tiers, the peers and the statistics are separate storage
keys, each rewritten as a whole, so a restart between two writes never leaves
a half-written record behind. The index of loaded infohashes is advisory:
readers always confirm the torrent record's own state.
"""

from __future__ import annotations

import asyncio
import logging
from weakref import WeakValueDictionary

from .config import ClientConfig
from .errors import ConflictError, NotFoundError
from .models import TorrentState
from .peers import PeerRegistry
from .statistics import StatisticsAggregator
from .storage import ANNOUNCE_LISTS, CATALOG, TORRENTS, KeyValueStorage, ScopedStorage
from .torrent_parser import MetaInfo, parse_metainfo

logger = logging.getLogger(__name__)

LOADED_INDEX = "loaded"


class TorrentCatalog:
    """Owns torrent entries; peers and statistics are sub-records per infohash."""

    def __init__(
        self,
        storage: KeyValueStorage,
        peers: PeerRegistry,
        statistics: StatisticsAggregator,
        config: ClientConfig | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.peers = peers
        self.statistics = statistics
        self._torrents = ScopedStorage(storage, TORRENTS)
        self._announce_lists = ScopedStorage(storage, ANNOUNCE_LISTS)
        self._index = ScopedStorage(storage, CATALOG)
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def lock(self, infohash: str) -> asyncio.Lock:
        """
        Lock serialising every operation on one infohash.

        Held weakly: the entry disappears once no task holds or awaits it.
        """
        lock = self._locks.get(infohash)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[infohash] = lock
        return lock

    def state(self, infohash: str) -> TorrentState:
        record = self._torrents.get(infohash)
        if record is None:
            return TorrentState.ABSENT
        return TorrentState(record["state"].decode())

    def generation(self, infohash: str) -> int | None:
        """Load counter of a loaded torrent, None when it is not loaded."""
        record = self._torrents.get(infohash)
        if record is None or TorrentState(record["state"].decode()) is not TorrentState.LOADED:
            return None
        return record.get("generation", 0)

    def require_loaded(self, infohash: str) -> None:
        """
        Raises:
            NotFoundError: If the infohash is absent or unloaded
        """
        if self.state(infohash) is not TorrentState.LOADED:
            raise NotFoundError(f"Torrent not loaded: {infohash}")

    def load(self, data: bytes) -> str:
        """
        Load a torrent file and return its hex infohash.

        Raises:
            FormatError: If the data is not a valid metainfo file
            ConflictError: If the infohash is already loaded
        """
        metainfo = parse_metainfo(data)
        infohash = metainfo.info_hash_hex
        previous = self._torrents.get(infohash)
        if previous is not None and TorrentState(previous["state"].decode()) is TorrentState.LOADED:
            raise ConflictError(f"Torrent already loaded: {infohash}")
        generation = (previous.get("generation", 0) if previous else 0) + 1

        if not self.config.keep_history_on_unload:
            self.peers.clear(infohash)
            self.statistics.clear(infohash)
        self._announce_lists.put(infohash, {"tiers": metainfo.announce_tiers})
        self._update_index(add=infohash)
        self._torrents.put(
            infohash,
            {"state": TorrentState.LOADED.value, "metainfo": bytes(data), "generation": generation},
        )

        name = metainfo.torrent.info.name or infohash
        logger.info(f"Loaded torrent {name} ({infohash}, {len(metainfo.announce_tiers)} tiers)")
        return infohash

    def unload(self, infohash: str) -> None:
        """
        Raises:
            NotFoundError: If the infohash is not loaded
        """
        generation = self.generation(infohash)
        if generation is None:
            raise NotFoundError(f"Torrent not loaded: {infohash}")
        self._torrents.put(infohash, {"state": TorrentState.UNLOADED.value, "generation": generation})
        self._announce_lists.delete(infohash)
        if not self.config.keep_history_on_unload:
            self.peers.clear(infohash)
            self.statistics.clear(infohash)
        self._update_index(remove=infohash)
        logger.info(f"Unloaded torrent {infohash}")

    def announces(self, infohash: str) -> list[list[str]]:
        """Announce tiers as currently stored, including shuffles and promotions."""
        self.require_loaded(infohash)
        record = self._announce_lists.get(infohash) or {}
        return [[url.decode("utf-8") for url in tier] for tier in record.get("tiers", [])]

    def set_announce_tiers(self, infohash: str, tiers: list[list[str]]) -> None:
        self.require_loaded(infohash)
        self._announce_lists.put(infohash, {"tiers": tiers})

    def metainfo(self, infohash: str) -> MetaInfo:
        self.require_loaded(infohash)
        record = self._torrents.get(infohash) or {}
        return parse_metainfo(record["metainfo"])

    def _indexed(self) -> set[str]:
        record = self._index.get(LOADED_INDEX) or {}
        return {infohash.decode("ascii") for infohash in record.get("infohashes", [])}

    def _update_index(self, add: str | None = None, remove: str | None = None) -> None:
        infohashes = self._indexed()
        if add is not None:
            infohashes.add(add)
        if remove is not None:
            infohashes.discard(remove)
        self._index.put(LOADED_INDEX, {"infohashes": sorted(infohashes)})

    def loaded(self) -> list[str]:
        """Infohashes currently loaded in the backing storage."""
        return sorted(h for h in self._indexed() if self.state(h) is TorrentState.LOADED)
