"""Shared test fixtures and helpers for moonwave-mcp tests."""

import asyncio
from typing import Any, Callable, Optional

from moonwave_mcp.aggregator import SourceFetchError
from moonwave_mcp.sources import DocSource, SourceRegistry

ROOT_URL = "https://docs.example.com/root/raw.json"
EXTRA_URL = "https://docs.example.com/extra/raw.json"


def make_function(name: str, function_type: str = "method", desc: str = "", **extra: Any) -> dict:
	"""Build a raw Moonwave function entry."""
	return {"name": name, "function_type": function_type, "desc": desc or f"{name} does things", **extra}


def make_class(
	name: str,
	functions: Optional[list] = None,
	tags: Optional[list[str]] = None,
	desc: str = "",
	**extra: Any,
) -> dict:
	"""Build a raw Moonwave class entry."""
	data: dict[str, Any] = {"name": name, "desc": desc or f"The {name} class", "functions": functions or []}
	if tags is not None:
		data["tags"] = tags
	data.update(extra)
	return data


def promise_payload() -> list[dict]:
	"""A small raw.json payload for the Promise library."""
	return [
		make_class(
			"Promise",
			tags=["async"],
			functions=[
				make_function("new", "static", "Construct a new Promise"),
				make_function("andThen", "method", "Chain a callback"),
				make_function("await", "method", "Yield until settled"),
			],
			properties=[{"name": "Status", "lua_type": "Status"}],
			source={"line": 10, "path": "lib/init.lua"},
		),
		make_class("Status", tags=["enum"], functions=[]),
	]


def utils_payload() -> list[dict]:
	"""A second payload that shares the class name 'Promise'."""
	return [
		make_class("Signal", tags=["events"], functions=[make_function("Connect"), make_function("Fire")]),
		make_class("Promise", functions=[make_function("new", "static", "Utility promise constructor")]),
	]


def make_registry(*sources: DocSource) -> SourceRegistry:
	return SourceRegistry(sources or [
		DocSource.from_raw_url(ROOT_URL, name="promise"),
		DocSource.from_raw_url(EXTRA_URL, name="utils"),
	])


class FakeFetcher:
	"""Stands in for the HTTP fetch: url -> payload, or an exception to raise.

	Records every URL requested so tests can assert on network access.
	"""

	def __init__(self, responses: Optional[dict[str, Any]] = None, delay: float = 0.0):
		self.responses = responses if responses is not None else {
			ROOT_URL: promise_payload(),
			EXTRA_URL: utils_payload(),
		}
		self.delay = delay
		self.calls: list[str] = []

	async def __call__(self, url: str) -> Any:
		self.calls.append(url)
		if self.delay:
			await asyncio.sleep(self.delay)
		response = self.responses.get(url)
		if response is None:
			raise SourceFetchError(f"HTTP 404 from {url}")
		if isinstance(response, BaseException):
			raise response
		return response


def capture_tools(mcp_register: Callable, *args: Any) -> dict:
	"""Register tools on a mock MCP and return the captured tool functions.

	Args:
		mcp_register: The registration function (e.g., register_doc_tools)
		*args: Extra arguments passed after the mock MCP

	Returns:
		Dict mapping tool name to the tool function
	"""
	captured = {}

	class MockMCP:
		def tool(self, **kwargs):
			def decorator(fn):
				captured[fn.__name__] = fn
				return fn
			return decorator

	mcp_register(MockMCP(), *args)
	return captured
