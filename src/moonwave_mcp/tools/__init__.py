"""MCP tools - the documentation browsing catalogue shared by every transport."""

from .catalogue import TOOL_DEFINITIONS, TOOL_NAMES, TOOLS, call_tool, run_tool, text_content

__all__ = [
	"TOOLS",
	"TOOL_DEFINITIONS",
	"TOOL_NAMES",
	"call_tool",
	"run_tool",
	"text_content",
]
