"""MCP tools for the CourseTorrent client."""

from .torrent_tools import register_torrent_tools
from .tracker_tools import register_tracker_tools


def register_all_tools(mcp) -> None:
    """Register all MCP tools with the server."""
    register_torrent_tools(mcp)
    register_tracker_tools(mcp)
