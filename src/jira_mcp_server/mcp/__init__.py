"""MCP protocol layer: server, lifespan, and tool handlers."""
