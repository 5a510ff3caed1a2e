"""
Known peer registry and tracker peer-list parsing.

Peers are unique by (ip, port) and listed in ascending numeric address order,
so 127.0.0.2 comes before 127.0.0.100.
"""

from __future__ import annotations

import ipaddress
import logging
import struct
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from .models import KnownPeer
from .storage import PEERS, KeyValueStorage, ScopedStorage

logger = logging.getLogger(__name__)


class PeerRegistry:
    """Deduplicated set of known peers per torrent."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._records = ScopedStorage(storage, PEERS)

    def _load(self, infohash: str) -> dict[tuple[str, int], KnownPeer]:
        record = self._records.get(infohash)
        if record is None:
            return {}
        peers = (KnownPeer.from_record(item) for item in record.get("peers", []))
        return {peer.key: peer for peer in peers}

    def _store(self, infohash: str, peers: dict[tuple[str, int], KnownPeer]) -> None:
        ordered = sorted(peers.values(), key=lambda p: p.sort_key)
        self._records.put(infohash, {"peers": [peer.to_record() for peer in ordered]})

    def merge(self, infohash: str, new_peers: Iterable[KnownPeer]) -> int:
        """
        Add peers not seen before. Existing peers keep their first-seen peer id.

        Returns:
            Number of peers added
        """
        peers = self._load(infohash)
        added = 0
        for peer in new_peers:
            if peer.key not in peers:
                peers[peer.key] = peer
                added += 1
        if added:
            self._store(infohash, peers)
        return added

    def invalidate(self, infohash: str, peer: KnownPeer) -> bool:
        """Remove ``peer`` if known; returns whether anything was removed."""
        peers = self._load(infohash)
        if peers.pop(peer.key, None) is None:
            return False
        self._store(infohash, peers)
        return True

    def list(self, infohash: str) -> list[KnownPeer]:
        return sorted(self._load(infohash).values(), key=lambda p: p.sort_key)

    def clear(self, infohash: str) -> None:
        self._records.delete(infohash)


def parse_compact_peers(peers_data: bytes) -> list[KnownPeer]:
    """
    Parse the compact IPv4 peer format (4 bytes address + 2 bytes port).

    A trailing partial block is ignored.
    """
    peers = []
    for i in range(0, len(peers_data) - len(peers_data) % 6, 6):
        ip_bytes, port = struct.unpack(">4sH", peers_data[i : i + 6])
        peers.append(KnownPeer(ip=str(ipaddress.IPv4Address(ip_bytes)), port=port))
    return peers


def parse_compact_peers6(peers_data: bytes) -> list[KnownPeer]:
    """Parse the compact IPv6 peer format (16 bytes address + 2 bytes port)."""
    peers = []
    for i in range(0, len(peers_data) - len(peers_data) % 18, 18):
        ip_bytes, port = struct.unpack(">16sH", peers_data[i : i + 18])
        peers.append(KnownPeer(ip=str(ipaddress.IPv6Address(ip_bytes)), port=port))
    return peers


def parse_peer_dicts(peers_data: list[Any]) -> list[KnownPeer]:
    """
    Parse the non-compact peer list (dictionaries with ip, port and peer id).

    Entries without a literal IP address or with an invalid port are skipped.
    """
    peers = []
    for item in peers_data:
        if not isinstance(item, dict):
            continue
        ip = item.get("ip", b"")
        if isinstance(ip, bytes):
            ip = ip.decode("utf-8", errors="replace")
        peer_id = item.get("peer id")
        try:
            peers.append(
                KnownPeer(
                    ip=ip,
                    port=item.get("port"),
                    peer_id=peer_id if isinstance(peer_id, bytes) else None,
                )
            )
        except ValidationError:
            logger.debug(f"Skipping malformed peer entry: {item!r}")
    return peers


def parse_response_peers(response: dict[str, Any]) -> list[KnownPeer]:
    """Collect peers from an announce response in any supported format."""
    peers: list[KnownPeer] = []
    peers_data = response.get("peers")
    if isinstance(peers_data, bytes):
        peers.extend(parse_compact_peers(peers_data))
    elif isinstance(peers_data, list):
        peers.extend(parse_peer_dicts(peers_data))

    peers6_data = response.get("peers6")
    if isinstance(peers6_data, bytes):
        peers.extend(parse_compact_peers6(peers6_data))
    return peers
