"""Helpers shared by the MCP tools."""

from pathlib import Path

from ..models import KnownPeer, ScrapeData
from .models import PeerInfo, TrackerStats


def find_torrent_file(torrent_path: str, torrents_dir: Path) -> Path:
    """
    Locate a .torrent file given as a path or a bare name.

    Relative paths are tried as given, then inside ``torrents_dir``, then
    inside ``torrents_dir`` with a ``.torrent`` suffix added.

    Raises:
        FileNotFoundError: If no candidate exists
    """
    path = Path(torrent_path)
    candidates = [path]
    if not path.is_absolute():
        candidates.append(torrents_dir / path)
        if path.suffix != ".torrent":
            candidates.append(torrents_dir / path.with_name(path.name + ".torrent"))

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"Torrent file not found: {torrent_path}")


def peer_info(peer: KnownPeer) -> PeerInfo:
    return PeerInfo(ip=peer.ip, port=peer.port, peer_id=peer.peer_id.hex() if peer.peer_id is not None else None)


def tracker_stats(stats: dict[str, ScrapeData]) -> list[TrackerStats]:
    """Flatten per-URL statistics, ordered by tracker URL."""
    return [TrackerStats(url=url, **stats[url].model_dump()) for url in sorted(stats)]
