"""
Event stream (text/event-stream) delivery for MCP responses.

An EventChannel is one open stream: payloads sent to it become data frames,
quiet periods are filled with heartbeat comments, and the stream ends when
the channel is closed or when no payload was sent for idle_timeout seconds.
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence

from .jsonrpc import INTERNAL_ERROR, RPCMessage, error_envelope

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 30.0
IDLE_TIMEOUT = 300.0

HEARTBEAT_FRAME = ": keepalive\n\n"

_CLOSE = object()


def data_frame(payload: Any) -> str:
	return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class EventChannel:
	"""
	A single server-to-client event stream.

	Usage:
		channel = EventChannel()
		channel.send({"jsonrpc": "2.0", ...})
		channel.close()
		async for frame in channel.stream():
			...
	"""

	def __init__(self, heartbeat_interval: float = HEARTBEAT_INTERVAL, idle_timeout: float = IDLE_TIMEOUT):
		self.heartbeat_interval = heartbeat_interval
		self.idle_timeout = idle_timeout
		self._queue: asyncio.Queue = asyncio.Queue()
		self._closed = False

	@property
	def closed(self) -> bool:
		return self._closed

	def send(self, payload: Any) -> bool:
		"""Queue a payload as a data frame. Returns False if the channel is closed."""
		if self._closed:
			logger.debug("Dropping payload sent to a closed event channel")
			return False
		self._queue.put_nowait(payload)
		return True

	def close(self) -> None:
		"""Close the channel; frames already queued are still delivered."""
		if self._closed:
			return
		self._closed = True
		self._queue.put_nowait(_CLOSE)

	async def stream(self) -> AsyncIterator[str]:
		"""Yield SSE frames until closed, idle for too long, or cancelled."""
		loop = asyncio.get_running_loop()
		deadline = loop.time() + self.idle_timeout
		try:
			while True:
				remaining = deadline - loop.time()
				if remaining <= 0:
					logger.debug(f"Event stream idle for {self.idle_timeout}s, closing")
					break
				try:
					item = await asyncio.wait_for(
						self._queue.get(), timeout=min(self.heartbeat_interval, remaining),
					)
				except asyncio.TimeoutError:
					if loop.time() < deadline:
						yield HEARTBEAT_FRAME
					continue
				if item is _CLOSE:
					break
				deadline = loop.time() + self.idle_timeout
				yield data_frame(item)
		finally:
			self._closed = True
			logger.debug("Event stream closed")


async def stream_responses(
	requests: Sequence[RPCMessage],
	resolve: Callable[[RPCMessage], Awaitable[dict[str, Any]]],
	channel: Optional[EventChannel] = None,
) -> AsyncIterator[str]:
	"""
	Resolve requests one by one and stream each envelope as its own frame.

	If resolving a request raises, an internal-error envelope for that request
	is sent and the stream ends. The producer task is cancelled if the client
	goes away first.
	"""
	channel = channel or EventChannel()

	async def produce() -> None:
		current: Optional[RPCMessage] = None
		try:
			for message in requests:
				current = message
				channel.send(await resolve(message))
		except Exception as e:
			logger.exception("Failed to resolve a streamed request")
			request_id = current.id if current is not None else None
			channel.send(error_envelope(request_id, INTERNAL_ERROR, "Internal error", str(e)))
		finally:
			channel.close()

	producer = asyncio.create_task(produce())
	try:
		async for frame in channel.stream():
			yield frame
	finally:
		if not producer.done():
			producer.cancel()
		with contextlib.suppress(asyncio.CancelledError):
			await producer
		channel.close()
