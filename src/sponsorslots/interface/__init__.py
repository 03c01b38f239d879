"""Interface layer: CLI and MCP surfaces."""
