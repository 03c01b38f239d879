"""MCP server, tools, auth and observability."""
