"""
Base types for Huginn tool plugins.

A plugin directory exports a ``tools`` collection. Each entry is either a
``Tool`` instance or a plain mapping with ``name``, ``description``,
``inputSchema`` and ``handler`` keys; mappings are converted to ``Tool`` once
they pass the contract check in ``validation``.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from mcp import types

from huginn.mcp.cancellation import CancellationToken

ToolArguments = dict[str, Any]
ToolHandler = Callable[[ToolArguments, CancellationToken], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, eq=False)
class Tool:
    """A named, schema-described operation with an asynchronous handler.

    Instances are immutable; a reload replaces them, it never edits them.
    Equality is identity so a reloaded tool never compares equal to the one
    it replaced.
    """

    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: ToolHandler

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Tool":
        """Build a tool from a mapping that already satisfies ``is_tool``."""
        return cls(
            name=data["name"],
            description=data["description"],
            input_schema=data["inputSchema"],
            handler=data["handler"],
        )

    def to_list_item(self) -> dict[str, Any]:
        """Public projection used by listings."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": dict(self.input_schema),
        }

    def get_tool_definition(self) -> types.Tool:
        """Get the MCP tool definition for this tool."""
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=dict(self.input_schema),
        )

    def __repr__(self) -> str:
        return f"<Tool: {self.name}>"


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    """Build a single-text-item tool result."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )
