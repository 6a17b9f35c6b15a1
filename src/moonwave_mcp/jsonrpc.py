"""
JSON-RPC 2.0 message parsing and envelope construction.

An HTTP body carries one message or a batch (array) of messages. A message
with an "id" key is a request and gets exactly one response envelope; a
message without one is a notification and never gets a response.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JSONRPCError(Exception):
	"""A failure that is reported to the client as a JSON-RPC error object."""

	def __init__(self, code: int, message: str, data: Any = None):
		self.code = code
		self.message = message
		self.data = data
		super().__init__(message)

	def to_dict(self) -> dict[str, Any]:
		error: dict[str, Any] = {"code": self.code, "message": self.message}
		if self.data is not None:
			error["data"] = self.data
		return error


@dataclass
class RPCMessage:
	"""One incoming JSON-RPC message."""

	method: Optional[str] = None
	params: Any = None
	id: Any = None
	has_id: bool = False

	@property
	def is_request(self) -> bool:
		"""A call that expects a response (the id may legitimately be null).

		An id without a method string is still answered, with INVALID_REQUEST.
		"""
		return self.has_id

	@property
	def is_notification(self) -> bool:
		return not self.has_id and self.method is not None

	@classmethod
	def from_dict(cls, data: dict[str, Any]) -> "RPCMessage":
		method = data.get("method")
		return cls(
			method=method if isinstance(method, str) else None,
			params=data.get("params"),
			id=data.get("id"),
			has_id="id" in data,
		)


def parse_messages(body: Union[bytes, str]) -> list[RPCMessage]:
	"""
	Parse an HTTP body into a list of messages.

	Raises:
		JSONRPCError: PARSE_ERROR if the body is not valid JSON
	"""
	try:
		data = json.loads(body)
	except (json.JSONDecodeError, UnicodeDecodeError) as e:
		raise JSONRPCError(PARSE_ERROR, "Parse error", str(e)) from e

	entries = data if isinstance(data, list) else [data]
	messages = []
	for entry in entries:
		if not isinstance(entry, dict):
			logger.debug(f"Dropping non-object batch entry: {entry!r}")
			continue
		messages.append(RPCMessage.from_dict(entry))
	return messages


def result_envelope(request_id: Any, result: Any) -> dict[str, Any]:
	return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_envelope(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
	return {
		"jsonrpc": JSONRPC_VERSION,
		"id": request_id,
		"error": JSONRPCError(code, message, data).to_dict(),
	}
