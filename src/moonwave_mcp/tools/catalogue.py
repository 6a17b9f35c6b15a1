"""
Tool catalogue and dispatch for tools/list and tools/call.

Each tool's arguments are a pydantic model; the published inputSchema and
the validation of incoming arguments are both derived from it.
"""

import json
import logging
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .. import query
from ..aggregator import Aggregator
from ..jsonrpc import INVALID_PARAMS, METHOD_NOT_FOUND, JSONRPCError
from ..sources import SourceRegistry

logger = logging.getLogger(__name__)

SOURCE_DESCRIPTION = "Only use this documentation source (see list_sources)"


class ToolArguments(BaseModel):
	"""Base for tool arguments. Every argument is a string; an empty one counts as absent."""
	model_config = ConfigDict(extra="ignore", frozen=True)

	@field_validator("*", mode="before")
	@classmethod
	def _empty_is_absent(cls, value: Any) -> Any:
		return None if value == "" else value


class ListSourcesArguments(ToolArguments):
	pass


class RawDataArguments(ToolArguments):
	source: Optional[str] = Field(default=None, description=SOURCE_DESCRIPTION)


class SearchClassesArguments(ToolArguments):
	query: Optional[str] = Field(default=None, description="Search query for class name")
	tag: Optional[str] = Field(default=None, description="Filter by tag")
	source: Optional[str] = Field(default=None, description=SOURCE_DESCRIPTION)


class GetClassArguments(ToolArguments):
	name: str = Field(description="The class name")
	source: Optional[str] = Field(default=None, description=SOURCE_DESCRIPTION)


class SearchFunctionsArguments(ToolArguments):
	query: Optional[str] = Field(default=None, description="Search query for function name")
	class_name: Optional[str] = Field(default=None, alias="className", description="Filter by class name")
	source: Optional[str] = Field(default=None, description=SOURCE_DESCRIPTION)


class GetFunctionArguments(ToolArguments):
	class_name: str = Field(alias="className", description="The class name")
	function_name: str = Field(alias="functionName", description="The function name")
	source: Optional[str] = Field(default=None, description=SOURCE_DESCRIPTION)


class Tool(NamedTuple):
	name: str
	description: str
	arguments: type[ToolArguments]


TOOLS: list[Tool] = [
	Tool("list_sources", "List the documentation sources this server aggregates", ListSourcesArguments),
	Tool("get_raw_api_data", "Get the complete raw API documentation data", RawDataArguments),
	Tool("search_classes", "Search for classes by name or tag", SearchClassesArguments),
	Tool("get_class", "Get detailed information about a specific class", GetClassArguments),
	Tool("search_functions", "Search for functions across all classes", SearchFunctionsArguments),
	Tool("get_function", "Get detailed information about a specific function", GetFunctionArguments),
]

_TOOLS_BY_NAME = {t.name: t for t in TOOLS}


def input_schema(arguments: type[ToolArguments]) -> dict[str, Any]:
	"""JSON schema of a tool's arguments, keyed by their wire names."""
	properties = {}
	required = []
	for field_name, info in arguments.model_fields.items():
		key = info.alias or field_name
		properties[key] = {"type": "string", "description": info.description}
		if info.is_required():
			required.append(key)

	schema: dict[str, Any] = {"type": "object", "properties": properties}
	if required:
		schema["required"] = required
	return schema


TOOL_DEFINITIONS: list[dict[str, Any]] = [
	{"name": t.name, "description": t.description, "inputSchema": input_schema(t.arguments)}
	for t in TOOLS
]

TOOL_NAMES = [t.name for t in TOOLS]


def parse_arguments(name: str, arguments: Any) -> ToolArguments:
	"""
	Validate raw tools/call arguments against the tool's model.

	Raises:
		JSONRPCError: INVALID_PARAMS if the arguments are not an object or fail validation
	"""
	if arguments is None:
		arguments = {}
	if not isinstance(arguments, dict):
		raise JSONRPCError(INVALID_PARAMS, f"Arguments for '{name}' must be an object")

	try:
		return _TOOLS_BY_NAME[name].arguments.model_validate(arguments)
	except ValidationError as e:
		problems = "; ".join(
			f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
			for err in e.errors()
		)
		raise JSONRPCError(INVALID_PARAMS, f"Invalid arguments for '{name}': {problems}") from e


def text_content(value: Any) -> dict[str, Any]:
	"""Wrap a tool result as MCP text content; messages pass through verbatim."""
	text = value if isinstance(value, str) else json.dumps(value, indent=2, ensure_ascii=False)
	return {"content": [{"type": "text", "text": text}]}


async def run_tool(
	name: str,
	arguments: Any,
	registry: SourceRegistry,
	aggregator: Aggregator,
) -> Any:
	"""
	Execute a tool and return its raw result (data or explanatory string).

	Raises:
		JSONRPCError: METHOD_NOT_FOUND for unknown tools, INVALID_PARAMS for bad arguments
	"""
	if not isinstance(name, str) or name not in _TOOLS_BY_NAME:
		raise JSONRPCError(METHOD_NOT_FOUND, f"Unknown tool: {name}")
	args = parse_arguments(name, arguments)

	if isinstance(args, ListSourcesArguments):
		return query.list_sources(registry)

	corpus = (await aggregator.aggregate(registry)).records

	if isinstance(args, RawDataArguments):
		return query.get_raw_api_data(corpus, source=args.source)
	if isinstance(args, SearchClassesArguments):
		return query.search_classes(corpus, query=args.query, tag=args.tag, source=args.source)
	if isinstance(args, GetClassArguments):
		return query.get_class(corpus, args.name, source=args.source)
	if isinstance(args, SearchFunctionsArguments):
		return query.search_functions(corpus, query=args.query, class_name=args.class_name, source=args.source)
	return query.get_function(corpus, args.class_name, args.function_name, source=args.source)


async def call_tool(
	name: Any,
	arguments: Any,
	registry: SourceRegistry,
	aggregator: Aggregator,
) -> dict[str, Any]:
	"""Handle a tools/call: run the tool and wrap the result as text content."""
	return text_content(await run_tool(name, arguments, registry, aggregator))
