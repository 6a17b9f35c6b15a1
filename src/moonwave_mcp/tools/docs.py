"""Documentation tools registered on a FastMCP server (stdio transport)."""

from typing import Any

from mcp.server.fastmcp import FastMCP

from ..aggregator import Aggregator
from ..sources import SourceRegistry
from .catalogue import TOOLS, run_tool, text_content

_DESCRIPTIONS = {t.name: t.description for t in TOOLS}


def register_doc_tools(mcp: FastMCP, registry: SourceRegistry, aggregator: Aggregator) -> None:
	"""
	Register the six documentation tools.

	Parameter names are the catalogue's wire names, so stdio clients see the
	same arguments as tools/list over HTTP. Validation and dispatch go
	through run_tool, exactly as for tools/call.
	"""

	async def _text(tool: str, arguments: dict[str, Any]) -> str:
		result = await run_tool(tool, arguments, registry, aggregator)
		return text_content(result)["content"][0]["text"]

	@mcp.tool(description=_DESCRIPTIONS["list_sources"])
	async def list_sources() -> str:
		return await _text("list_sources", {})

	@mcp.tool(description=_DESCRIPTIONS["get_raw_api_data"])
	async def get_raw_api_data(source: str = "") -> str:
		return await _text("get_raw_api_data", {"source": source})

	@mcp.tool(description=_DESCRIPTIONS["search_classes"])
	async def search_classes(query: str = "", tag: str = "", source: str = "") -> str:
		return await _text("search_classes", {"query": query, "tag": tag, "source": source})

	@mcp.tool(description=_DESCRIPTIONS["get_class"])
	async def get_class(name: str, source: str = "") -> str:
		return await _text("get_class", {"name": name, "source": source})

	@mcp.tool(description=_DESCRIPTIONS["search_functions"])
	async def search_functions(query: str = "", className: str = "", source: str = "") -> str:  # noqa: N803
		return await _text("search_functions", {"query": query, "className": className, "source": source})

	@mcp.tool(description=_DESCRIPTIONS["get_function"])
	async def get_function(className: str, functionName: str, source: str = "") -> str:  # noqa: N803
		return await _text(
			"get_function",
			{"className": className, "functionName": functionName, "source": source},
		)
