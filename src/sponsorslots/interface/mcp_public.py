"""Public entrypoint.

Starts the visitor-facing MCP server (plans, available positions, checkout)
regardless of MCP_MODE. It imports nothing from the CLI so it can serve as a
minimal container entrypoint.

Usage:
    python -m sponsorslots.interface.mcp_public
    # or via the script entrypoint:
    sponsorslots-public
"""

from __future__ import annotations

from ..config.runtime import McpMode
from .mcp.server import serve


def main() -> None:
    serve(McpMode.public)


if __name__ == "__main__":
    main()
