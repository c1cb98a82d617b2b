"""MCP server exposing the archiver as tools."""

from __future__ import annotations

import logging
from typing import Dict, List

from mcp.server.fastmcp import FastMCP

from .archiver import Archiver
from .config import ArchiveConfig

logger = logging.getLogger("telegraph_archiver.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="telegraph-archiver")


@mcp.tool()
async def archive(url: str) -> str:
    """Capture a web page and return the URL of its Telegraph copy."""
    return await Archiver(ArchiveConfig.from_env()).archive(url)


@mcp.tool()
async def archive_batch(urls: List[str]) -> Dict[str, str]:
    """Archive several pages; maps each input URL to a page URL or an error."""
    return await Archiver(ArchiveConfig.from_env()).archive_batch(urls)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
