"""MCP server factory.

Creates either the public or the owner server. Each surface registers
only its own tool set.

Usage:
    python -m sponsorslots.interface.mcp.server   # surface from MCP_MODE
    # or via the script entrypoint:
    sponsorslots-mcp
"""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from ...config.runtime import McpMode, get_settings
from .auth import check_scope, resolve_mode
from .tools import register_owner_tools, register_public_tools

_SERVER_NAMES = {
    McpMode.public: "sponsorslots-public",
    McpMode.owner: "sponsorslots-owner",
}


def create_server(mode: McpMode | str = McpMode.public) -> FastMCP:
    """Build and return a configured FastMCP server.

    Args:
        mode: ``"public"`` for visitors (plans, positions, checkout)
            or ``"owner"`` for organizers.

    Returns:
        A FastMCP instance with the appropriate tools registered.
    """
    surface = resolve_mode(mode)
    server = FastMCP(_SERVER_NAMES[surface])
    if surface == McpMode.public:
        register_public_tools(server)
    else:
        register_owner_tools(server)
    return server


def serve(mode: McpMode | str | None = None) -> None:
    """Gate, build and run a surface over stdio; ``None`` uses the configured ``mcp_mode``."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    surface = check_scope(mode, settings)
    create_server(surface).run(transport="stdio")


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
