"""moonwave-mcp: MCP server for browsing Moonwave API documentation."""

__version__ = "1.0.0"
