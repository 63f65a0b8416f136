"""MCP server exposing the autopilot to agent clients."""
