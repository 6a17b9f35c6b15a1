"""
MCP request handling over JSON-RPC 2.0.

The handler is stateless across HTTP calls: each call gets a fresh
RequestContext, and session ids are minted but never stored or checked.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from . import __version__
from .aggregator import Aggregator
from .jsonrpc import (
	INTERNAL_ERROR,
	INVALID_PARAMS,
	INVALID_REQUEST,
	METHOD_NOT_FOUND,
	JSONRPCError,
	RPCMessage,
	error_envelope,
	result_envelope,
)
from .sources import SourceRegistry
from .tools import TOOL_DEFINITIONS, call_tool

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2025-03-26"
SERVER_NAME = "moonwave-mcp-server"
SERVER_INFO = {"name": SERVER_NAME, "version": __version__}


def mint_session_id() -> str:
	return str(uuid.uuid4())


@dataclass
class RequestContext:
	"""Per-HTTP-call values shared by every message of one batch."""
	session_id: Optional[str] = None


MethodHandler = Callable[[Any, RequestContext], Awaitable[Any]]


class MCPHandler:
	"""
	Dispatches JSON-RPC requests to the MCP methods this server implements.

	Usage:
		handler = MCPHandler(registry, Aggregator())
		context = handler.open_context(requests, session_header)
		envelopes = await handler.handle_batch(requests, context)
	"""

	def __init__(self, registry: SourceRegistry, aggregator: Aggregator):
		self.registry = registry
		self.aggregator = aggregator
		self._methods: dict[str, MethodHandler] = {
			"initialize": self._initialize,
			"tools/list": self._tools_list,
			"tools/call": self._tools_call,
		}

	def open_context(self, requests: Sequence[RPCMessage], session_id: Optional[str] = None) -> RequestContext:
		"""A batch carrying initialize starts a new session; otherwise echo the client's id."""
		if any(m.method == "initialize" for m in requests):
			session_id = mint_session_id()
		return RequestContext(session_id=session_id)

	async def handle(self, message: RPCMessage, context: RequestContext) -> dict[str, Any]:
		"""Resolve one request into exactly one response envelope."""
		try:
			if message.method is None:
				raise JSONRPCError(INVALID_REQUEST, "Invalid Request")
			method = self._methods.get(message.method)
			if method is None:
				raise JSONRPCError(METHOD_NOT_FOUND, "Method not found")
			result = await method(message.params, context)
			return result_envelope(message.id, result)
		except JSONRPCError as e:
			return error_envelope(message.id, e.code, e.message, e.data)
		except Exception as e:
			logger.exception(f"Unhandled error in '{message.method}'")
			return error_envelope(message.id, INTERNAL_ERROR, "Internal error", str(e))

	async def handle_batch(self, requests: Sequence[RPCMessage], context: RequestContext) -> list[dict[str, Any]]:
		"""Resolve requests concurrently; envelopes keep the input order."""
		return list(await asyncio.gather(*(self.handle(m, context) for m in requests)))

	async def notify(self, message: RPCMessage, context: RequestContext) -> None:
		"""Accept a notification. Nothing is ever sent back, not even errors."""
		logger.debug(f"Notification '{message.method}' accepted (session {context.session_id})")

	async def _initialize(self, params: Any, context: RequestContext) -> dict[str, Any]:
		client = params.get("clientInfo", {}) if isinstance(params, dict) else {}
		logger.info(
			f"Initializing session {context.session_id} for client "
			f"{client.get('name', 'unknown') if isinstance(client, dict) else 'unknown'}"
		)
		return {
			"protocolVersion": PROTOCOL_VERSION,
			"capabilities": {"tools": {}},
			"serverInfo": dict(SERVER_INFO),
		}

	async def _tools_list(self, params: Any, context: RequestContext) -> dict[str, Any]:
		return {"tools": TOOL_DEFINITIONS}

	async def _tools_call(self, params: Any, context: RequestContext) -> dict[str, Any]:
		if not isinstance(params, dict):
			raise JSONRPCError(INVALID_PARAMS, "tools/call params must be an object")
		return await call_tool(params.get("name"), params.get("arguments"), self.registry, self.aggregator)
