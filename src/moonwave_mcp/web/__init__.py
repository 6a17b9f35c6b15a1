"""HTTP transport for the documentation MCP server."""

from __future__ import annotations

from typing import Optional

import uvicorn
from starlette.applications import Starlette

from ..aggregator import Aggregator
from ..config import Config, get_config
from ..sources import SourceRegistry
from .app import build_app


def create_app(registry: SourceRegistry, config: Optional[Config] = None) -> Starlette:
	"""Create the Starlette ASGI application with configured timings."""
	config = config or get_config()
	return build_app(
		registry,
		aggregator=Aggregator(timeout=config.fetch_timeout),
		heartbeat_interval=config.heartbeat_interval,
		idle_timeout=config.idle_timeout,
	)


def run_server(registry: SourceRegistry, config: Config, host: str = "", port: int = 0) -> None:
	"""Run the HTTP server until interrupted."""
	app = create_app(registry, config)
	host = host or config.host
	port = port or config.port

	print(f"MCP endpoint running at http://{host}:{port}/mcp")
	print("Press Ctrl+C to stop.")
	uvicorn.run(app, host=host, port=port, log_level="warning")
