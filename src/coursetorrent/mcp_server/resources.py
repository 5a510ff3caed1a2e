"""MCP resources for browsing loaded torrents."""

from .state import get_client


def register_resources(mcp) -> None:
    """Register all MCP resources with the server."""

    @mcp.resource("torrents://loaded")
    async def resource_loaded_torrents() -> str:
        """Show loaded torrents with their tracker statistics."""
        client = get_client()
        loaded = client.catalog.loaded()

        if not loaded:
            return "No torrents loaded."

        lines = ["# Loaded Torrents\n"]
        for info_hash in loaded:
            name = client.catalog.metainfo(info_hash).torrent.info.name or "(unnamed)"
            lines.append(f"## {name}")
            lines.append(f"- **Infohash**: `{info_hash}`")
            peers = await client.known_peers(info_hash)
            lines.append(f"- **Known peers**: {len(peers)}")
            stats = await client.tracker_stats(info_hash)
            for url, data in stats.items():
                if data.failure_reason:
                    lines.append(f"- `{url}`: failed ({data.failure_reason})")
                else:
                    lines.append(
                        f"- `{url}`: {data.seeders} seeders, {data.leechers} leechers, "
                        f"{data.downloaded} downloaded, interval {data.interval}s"
                    )
            lines.append("")

        return "\n".join(lines)
