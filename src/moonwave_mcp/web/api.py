"""HTTP endpoints: info document, the MCP endpoint, CORS handling."""

from __future__ import annotations

import logging
from functools import partial

from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from .. import __version__
from ..jsonrpc import JSONRPCError, error_envelope, parse_messages
from ..protocol import PROTOCOL_VERSION, SERVER_NAME, MCPHandler
from ..sources import SourceRegistry
from ..streaming import EventChannel, stream_responses

logger = logging.getLogger(__name__)

MCP_ENDPOINT = "/mcp"
EVENT_STREAM = "text/event-stream"
SESSION_HEADER = "Mcp-Session-Id"

STREAM_HEADERS = {
	"Cache-Control": "no-cache",
	"Connection": "keep-alive",
	"X-Accel-Buffering": "no",
}


def get_handler(request: Request) -> MCPHandler:
	return request.app.state.handler


def get_registry(request: Request) -> SourceRegistry:
	return request.app.state.registry


def cors_headers(request: Request) -> dict[str, str]:
	"""CORS headers reflecting the caller's origin."""
	return {
		"Access-Control-Allow-Origin": request.headers.get("origin") or "*",
		"Access-Control-Allow-Methods": "GET, POST, OPTIONS",
		"Access-Control-Allow-Headers": "Content-Type, Accept, Mcp-Session-Id, Last-Event-ID",
		"Access-Control-Expose-Headers": SESSION_HEADER,
	}


def accepts_event_stream(request: Request) -> bool:
	return EVENT_STREAM in request.headers.get("accept", "")


def new_channel(request: Request) -> EventChannel:
	state = request.app.state
	return EventChannel(heartbeat_interval=state.heartbeat_interval, idle_timeout=state.idle_timeout)


def preflight(request: Request) -> Response:
	return Response(status_code=204, headers=cors_headers(request))


async def info(request: Request) -> JSONResponse:
	"""Describe the server. Summaries come from the registry; nothing is fetched."""
	return JSONResponse(
		{
			"name": SERVER_NAME,
			"version": __version__,
			"description": "MCP server for Moonwave API documentation",
			"protocolVersion": PROTOCOL_VERSION,
			"sources": get_registry(request).summaries(),
			"mcpEndpoint": MCP_ENDPOINT,
		},
		headers=cors_headers(request),
	)


async def mcp_endpoint(request: Request) -> Response:
	if request.method == "POST":
		return await mcp_post(request)
	if request.method == "OPTIONS":
		return preflight(request)
	return await mcp_get(request)


async def mcp_post(request: Request) -> Response:
	"""JSON-RPC over POST: buffered JSON, or an event stream when the client accepts one."""
	headers = cors_headers(request)
	handler = get_handler(request)

	try:
		messages = parse_messages(await request.body())
	except JSONRPCError as e:
		return JSONResponse(error_envelope(None, e.code, e.message, e.data), status_code=400, headers=headers)

	requests = [m for m in messages if m.is_request]
	context = handler.open_context(requests, request.headers.get(SESSION_HEADER))

	for message in messages:
		if message.is_notification:
			try:
				await handler.notify(message, context)
			except Exception:
				logger.debug(f"Notification '{message.method}' failed, dropped", exc_info=True)

	if not requests:
		return Response(status_code=202, headers=headers)

	if context.session_id:
		headers[SESSION_HEADER] = context.session_id

	if accepts_event_stream(request):
		frames = stream_responses(requests, partial(handler.handle, context=context), channel=new_channel(request))
		return StreamingResponse(frames, media_type=EVENT_STREAM, headers={**headers, **STREAM_HEADERS})

	responses = await handler.handle_batch(requests, context)
	return JSONResponse(responses[0] if len(responses) == 1 else responses, headers=headers)


async def mcp_get(request: Request) -> Response:
	"""Open the server-to-client event stream."""
	if not accepts_event_stream(request):
		return PlainTextResponse("Method Not Allowed", status_code=405, headers=cors_headers(request))

	last_event_id = request.headers.get("last-event-id")
	if last_event_id:
		logger.debug(f"Stream opened with Last-Event-ID {last_event_id} (no replay)")

	channel = new_channel(request)
	return StreamingResponse(
		channel.stream(),
		media_type=EVENT_STREAM,
		headers={**cors_headers(request), **STREAM_HEADERS},
	)


async def http_error(request: Request, exc: HTTPException) -> Response:
	"""404/405 for unrouted requests, still carrying CORS headers; OPTIONS is always a preflight."""
	if request.method == "OPTIONS":
		return preflight(request)
	headers = {**(exc.headers or {}), **cors_headers(request)}
	return PlainTextResponse(exc.detail, status_code=exc.status_code, headers=headers)
