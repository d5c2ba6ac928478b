"""MCP tools exposing the board to agents."""
