"""Starlette app with route assembly."""

from __future__ import annotations

import logging
from typing import Optional

from starlette.applications import Starlette
from starlette.routing import Route

from ..aggregator import Aggregator
from ..protocol import MCPHandler
from ..sources import SourceRegistry
from ..streaming import HEARTBEAT_INTERVAL, IDLE_TIMEOUT
from .api import MCP_ENDPOINT, http_error, info, mcp_endpoint

logger = logging.getLogger(__name__)

MCP_METHODS = ["GET", "POST", "OPTIONS"]


def build_app(
	registry: SourceRegistry,
	aggregator: Optional[Aggregator] = None,
	heartbeat_interval: float = HEARTBEAT_INTERVAL,
	idle_timeout: float = IDLE_TIMEOUT,
) -> Starlette:
	"""Build and return the Starlette ASGI app serving the registry."""
	routes = [
		Route("/", info, methods=["GET"]),
		Route(MCP_ENDPOINT, mcp_endpoint, methods=MCP_METHODS),
		Route(f"{MCP_ENDPOINT}/", mcp_endpoint, methods=MCP_METHODS),
	]

	app = Starlette(routes=routes, exception_handlers={404: http_error, 405: http_error})
	app.state.registry = registry
	app.state.handler = MCPHandler(registry, aggregator or Aggregator())
	app.state.heartbeat_interval = heartbeat_interval
	app.state.idle_timeout = idle_timeout
	logger.debug(f"Serving {len(registry)} documentation sources at {MCP_ENDPOINT}")
	return app
