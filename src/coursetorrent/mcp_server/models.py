"""Pydantic models returned by the MCP tools."""

from pydantic import BaseModel


class LoadedTorrent(BaseModel):
    """A torrent loaded into the catalog."""

    info_hash: str
    name: str | None = None
    announce_tiers: list[list[str]]


class PeerInfo(BaseModel):
    """A known peer, peer id hex-encoded when present."""

    ip: str
    port: int
    peer_id: str | None = None


class TrackerStats(BaseModel):
    """Latest known statistics for one tracker."""

    url: str
    seeders: int
    leechers: int
    downloaded: int
    interval: int
    failure_reason: str | None = None


class AnnounceResult(BaseModel):
    """Outcome of an announce."""

    info_hash: str
    interval: int
    known_peers: int
