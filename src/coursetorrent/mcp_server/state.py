"""Shared state for the MCP server."""

from __future__ import annotations

from pathlib import Path

from ..client import CourseTorrent

# Default directory searched for relative .torrent paths
DEFAULT_TORRENTS_DIR = Path.cwd() / "torrents"

_client: CourseTorrent | None = None


def get_client() -> CourseTorrent:
    """Return the process-wide client, creating it from the environment on first use."""
    global _client
    if _client is None:
        _client = CourseTorrent()
    return _client


def set_client(client: CourseTorrent | None) -> None:
    """Replace the shared client (used by tests and embedding applications)."""
    global _client
    _client = client
