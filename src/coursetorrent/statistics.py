"""Per-tracker statistics with "last known value" semantics."""

from __future__ import annotations

from .models import ScrapeData, ScrapeUpdate
from .storage import STATISTICS, KeyValueStorage, ScopedStorage


class StatisticsAggregator:
    """
    Merges announce and scrape results into one ScrapeData per tracker URL.

    A field missing from a response keeps its previous value (0 if never
    seen). A failure sets the failure reason without erasing counters, and the
    next success clears it.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._records = ScopedStorage(storage, STATISTICS)

    def _load(self, infohash: str) -> dict[str, ScrapeData]:
        record = self._records.get(infohash)
        if record is None:
            return {}
        trackers = record.get("trackers", {})
        return {url: ScrapeData.from_record(data) for url, data in trackers.items()}

    def update(self, infohash: str, tracker_url: str, update: ScrapeUpdate) -> ScrapeData:
        stats = self._load(infohash)
        merged = stats.get(tracker_url, ScrapeData()).merged(update)
        stats[tracker_url] = merged
        self._records.put(infohash, {"trackers": {url: data.to_record() for url, data in stats.items()}})
        return merged

    def record_failure(self, infohash: str, tracker_url: str, reason: str) -> ScrapeData:
        return self.update(infohash, tracker_url, ScrapeUpdate.failure(reason))

    def snapshot(self, infohash: str) -> dict[str, ScrapeData]:
        """Statistics for every tracker URL that has answered or failed at least once."""
        return self._load(infohash)

    def clear(self, infohash: str) -> None:
        self._records.delete(infohash)
