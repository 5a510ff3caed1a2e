"""Tracker announce, scrape and peer tools."""

from ...errors import CourseTorrentError
from ...models import KnownPeer, TorrentEvent
from ..models import AnnounceResult, PeerInfo, TrackerStats
from ..utils import peer_info, tracker_stats
from ..state import get_client


def register_tracker_tools(mcp) -> None:
    """Register tracker-related tools with the MCP server."""

    @mcp.tool()
    async def announce(
        info_hash: str,
        event: str = "started",
        uploaded: int = 0,
        downloaded: int = 0,
        left: int = 0,
    ) -> AnnounceResult:
        """
        Announce to the torrent's trackers and collect peers.

        Trackers are tried tier by tier until one answers. A "started" event
        shuffles the URLs within each tier first.

        Args:
            info_hash: Hex infohash of a loaded torrent.
            event: One of "started", "stopped", "completed" or "" for a regular announce.
            uploaded: Bytes uploaded so far.
            downloaded: Bytes downloaded so far.
            left: Bytes left to download.

        Returns:
            The announce interval and the number of known peers.
        """
        client = get_client()
        try:
            interval = await client.announce(info_hash, TorrentEvent(event), uploaded, downloaded, left)
            peers = await client.known_peers(info_hash)
        except (CourseTorrentError, ValueError) as e:
            raise ValueError(f"Announce failed: {e}") from e
        return AnnounceResult(info_hash=info_hash.lower(), interval=interval, known_peers=len(peers))

    @mcp.tool()
    async def scrape(
        info_hash: str,
    ) -> list[TrackerStats]:
        """
        Scrape every tracker of a torrent for swarm statistics.

        Args:
            info_hash: Hex infohash of a loaded torrent.

        Returns:
            Statistics per tracker after the scrape.
        """
        client = get_client()
        try:
            await client.scrape(info_hash)
            stats = await client.tracker_stats(info_hash)
        except CourseTorrentError as e:
            raise ValueError(f"Scrape failed: {e}") from e
        return tracker_stats(stats)

    @mcp.tool()
    async def get_tracker_stats(
        info_hash: str,
    ) -> list[TrackerStats]:
        """
        Get the latest known statistics from each contacted tracker.

        Args:
            info_hash: Hex infohash of a loaded torrent.

        Returns:
            Statistics per tracker; failure_reason is set when the last response failed.
        """
        try:
            stats = await get_client().tracker_stats(info_hash)
        except CourseTorrentError as e:
            raise ValueError(str(e)) from e
        return tracker_stats(stats)

    @mcp.tool()
    async def list_known_peers(
        info_hash: str,
    ) -> list[PeerInfo]:
        """
        List known peers of a torrent in ascending address order.

        Args:
            info_hash: Hex infohash of a loaded torrent.

        Returns:
            Peers with address, port and peer id.
        """
        try:
            peers = await get_client().known_peers(info_hash)
        except CourseTorrentError as e:
            raise ValueError(str(e)) from e
        return [peer_info(p) for p in peers]

    @mcp.tool()
    async def invalidate_peer(
        info_hash: str,
        ip: str,
        port: int,
    ) -> str:
        """
        Forget a known peer of a torrent.

        Args:
            info_hash: Hex infohash of a loaded torrent.
            ip: Peer IP address.
            port: Peer port.

        Returns:
            Confirmation message.
        """
        try:
            await get_client().invalidate_peer(info_hash, KnownPeer(ip=ip, port=port))
        except CourseTorrentError as e:
            raise ValueError(str(e)) from e
        return f"Invalidated {ip}:{port}"
