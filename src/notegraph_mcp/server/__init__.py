"""MCP server for the note graph."""
