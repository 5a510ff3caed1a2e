"""
Main MCP server setup and entry point.

This module initializes the FastMCP server and registers all tools and resources.
"""

import logging

from fastmcp import FastMCP

from .resources import register_resources
from .tools import register_all_tools

# Initialize FastMCP server
mcp = FastMCP(
    "CourseTorrent",
    instructions="A BitTorrent tracker client. Load .torrent files, announce to their trackers, "
    "scrape tracker statistics, and inspect the known peers of each torrent.",
)

# Register all tools and resources
register_all_tools(mcp)
register_resources(mcp)


def main() -> None:
    """Run the MCP server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
