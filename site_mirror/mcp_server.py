"""MCP server exposing the site mirror as a tool."""

from __future__ import annotations

import logging
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import MirrorConfig
from .mirror import run_mirror
from .utils import default_output_root

logger = logging.getLogger("site_mirror.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="site-mirror")


@mcp.tool()
async def mirror(url: str, output: str = "") -> str:
    """Mirror a web page and its assets into a static directory and summarize the result."""

    output_root = Path(output).expanduser() if output else default_output_root(url)
    config = MirrorConfig(entry_url=url, output_root=output_root.resolve())
    result = await run_mirror(config)

    lines = [
        f"index: {result.index_path}",
        f"written: {result.written}",
        f"failed: {len(result.failed)}",
    ]
    lines.extend(f"  {failure.url}: {failure.reason}" for failure in result.failed)
    lines.append(f"dangling: {len(result.dangling)}")
    lines.extend(f"  {path}" for path in result.dangling)
    return "\n".join(lines)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
