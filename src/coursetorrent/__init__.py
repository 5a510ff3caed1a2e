"""
CourseTorrent: a BitTorrent tracker client engine.

Parses torrent metainfo, announces to and scrapes HTTP trackers across BEP 12
tiers, and keeps the known peers and per-tracker statistics.
"""

from .client import CourseTorrent
from .config import ClientConfig
from .errors import ConflictError, CourseTorrentError, FormatError, NotFoundError, TrackerError
from .models import KnownPeer, ScrapeData, ScrapeUpdate, TorrentEvent, TorrentState

__all__ = [
    "ClientConfig",
    "ConflictError",
    "CourseTorrent",
    "CourseTorrentError",
    "FormatError",
    "KnownPeer",
    "NotFoundError",
    "ScrapeData",
    "ScrapeUpdate",
    "TorrentEvent",
    "TorrentState",
    "TrackerError",
]
