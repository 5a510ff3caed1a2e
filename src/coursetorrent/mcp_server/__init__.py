"""
MCP server package for the CourseTorrent client.

Exposes torrent loading and tracker communication via the Model Context Protocol.
"""

from .server import mcp

__all__ = ["mcp"]
