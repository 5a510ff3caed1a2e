"""Torrent loading and catalog tools."""

from pathlib import Path

from ...errors import CourseTorrentError
from ..models import LoadedTorrent
from ..state import DEFAULT_TORRENTS_DIR, get_client
from ..utils import find_torrent_file


def register_torrent_tools(mcp) -> None:
    """Register torrent-related tools with the MCP server."""

    @mcp.tool()
    def list_torrent_files(
        directory: str | None = None,
    ) -> list[dict[str, str]]:
        """
        List all .torrent files in a directory.

        Args:
            directory: Path to directory containing .torrent files.
                       Defaults to the 'torrents' folder in the working directory.

        Returns:
            List of torrent files with their paths and names.
        """
        torrents_dir = Path(directory) if directory else DEFAULT_TORRENTS_DIR

        if not torrents_dir.exists():
            return []

        return [
            {"path": str(file_path.absolute()), "name": file_path.name}
            for file_path in sorted(torrents_dir.glob("*.torrent"))
        ]

    @mcp.tool()
    async def load_torrent(
        torrent_path: str,
    ) -> LoadedTorrent:
        """
        Load a .torrent file so its trackers can be contacted.

        Args:
            torrent_path: Path to the .torrent file, or its name in the torrents folder.

        Returns:
            The infohash, name and announce tiers of the loaded torrent.
        """
        path = find_torrent_file(torrent_path, DEFAULT_TORRENTS_DIR)
        data = path.read_bytes()
        client = get_client()

        try:
            info_hash = await client.load(data)
            metainfo = client.catalog.metainfo(info_hash)
            return LoadedTorrent(
                info_hash=info_hash,
                name=metainfo.torrent.info.name,
                announce_tiers=await client.announces(info_hash),
            )
        except CourseTorrentError as e:
            raise ValueError(f"Failed to load torrent: {e}") from e

    @mcp.tool()
    async def unload_torrent(
        info_hash: str,
    ) -> str:
        """
        Unload a previously loaded torrent.

        Args:
            info_hash: Hex infohash returned by load_torrent.

        Returns:
            Confirmation message.
        """
        try:
            await get_client().unload(info_hash)
        except CourseTorrentError as e:
            raise ValueError(f"Failed to unload torrent: {e}") from e
        return f"Unloaded {info_hash}"

    @mcp.tool()
    async def get_announce_tiers(
        info_hash: str,
    ) -> list[list[str]]:
        """
        Get the announce tiers of a loaded torrent, in their current order.

        Args:
            info_hash: Hex infohash of a loaded torrent.

        Returns:
            Tiers of tracker URLs, tier 1 first.
        """
        try:
            return await get_client().announces(info_hash)
        except CourseTorrentError as e:
            raise ValueError(str(e)) from e

    @mcp.tool()
    def list_loaded_torrents() -> list[str]:
        """
        List the infohashes of all loaded torrents.

        Returns:
            Hex infohashes.
        """
        return get_client().catalog.loaded()
