"""Tests for the Moonwave documentation MCP server."""
