"""Owner entrypoint.

Starts the organizer MCP server (campaign setup, moderation, payment
settlement, expiry sweeps) regardless of MCP_MODE. Use for backoffice or
trusted operators.

Usage:
    python -m sponsorslots.interface.mcp_owner
    # or:
    sponsorslots-owner
"""

from __future__ import annotations

from ..config.runtime import McpMode
from .mcp.server import serve


def main() -> None:
    serve(McpMode.owner)


if __name__ == "__main__":
    main()
