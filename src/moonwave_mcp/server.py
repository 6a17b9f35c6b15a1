"""moonwave-mcp stdio MCP server."""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from .aggregator import Aggregator
from .protocol import SERVER_NAME
from .sources import SourceRegistry
from .tools.docs import register_doc_tools


def create_stdio_server(registry: SourceRegistry, aggregator: Optional[Aggregator] = None) -> FastMCP:
	"""Build a FastMCP server exposing the documentation tools over stdio."""
	mcp = FastMCP(SERVER_NAME)
	register_doc_tools(mcp, registry, aggregator or Aggregator())
	return mcp
