"""
MCP server implementation for Huginn.

This module exposes the plugin registry over the Model Context Protocol:
``list_tools`` returns the registry listing and ``call_tool`` runs the named
tool through the bounded executor.
"""

import uuid
from typing import Any

import mcp.server.stdio
from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from huginn.mcp.execution import safe_tool_execution
from huginn.mcp.plugins.base import text_result
from huginn.mcp.plugins.registry import PluginRegistry
from huginn.utils.config import HuginnSettings, get_settings
from huginn.utils.errors import ToolExecutionError
from huginn.utils.logging import setup_logging

logger = setup_logging(__name__)


async def dispatch_tool_call(
    registry: PluginRegistry,
    name: str,
    arguments: dict[str, Any] | None,
    timeout_ms: int | None = None,
) -> types.CallToolResult:
    """Look up ``name`` and execute it under the bounded executor.

    Args:
        registry: Registry to resolve the tool against
        name: Requested tool name
        arguments: Tool arguments; echoed into the failure log
        timeout_ms: Optional deadline override

    Returns:
        The tool result, or an ``isError`` result for an unknown tool
    """
    tool = registry.get_tool(name)
    if tool is None:
        available = ", ".join(registry.list_tool_names())
        logger.error(f"Unknown tool requested: {name}")
        return text_result(f"Unknown tool: {name}. Available tools: {available}", is_error=True)

    args = arguments or {}
    return await safe_tool_execution(
        tool.name,
        lambda token: tool.handler(args, token),
        timeout_ms=timeout_ms,
        log_args=args,
    )


def create_mcp_server(registry: PluginRegistry, settings: HuginnSettings | None = None) -> Server:
    """Create and configure the MCP server.

    Args:
        registry: Initialized plugin registry
        settings: Optional settings override

    Returns:
        Configured MCP server instance
    """
    settings = settings or get_settings()
    server = Server(settings.mcp_server_name)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """List available MCP tools from the plugin registry."""
        corr = str(uuid.uuid4())
        tools = registry.get_tool_definitions()
        logger.info(f"[corr={corr}] list_tools returning {len(tools)} tools")
        return tools

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: dict | None
    ) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
        """Handle tool execution requests via the plugin registry."""
        corr = str(uuid.uuid4())
        logger.info(f"[corr={corr}] call_tool start: name={name}")

        result = await dispatch_tool_call(registry, name, arguments)
        if result.isError:
            # The server turns a raised error into an isError response
            text = "\n".join(item.text for item in result.content if isinstance(item, types.TextContent))
            logger.info(f"[corr={corr}] call_tool failed: name={name}")
            raise ToolExecutionError(text)

        logger.info(f"[corr={corr}] call_tool success: name={name}, items={len(result.content)}")
        return list(result.content)

    return server


async def run_mcp_server(settings: HuginnSettings | None = None) -> None:
    """Discover plugins and serve them over stdio.

    Args:
        settings: Optional settings override
    """
    settings = settings or get_settings()

    registry = PluginRegistry(settings=settings)
    await registry.init()
    logger.info(f"Loaded {len(registry.list_tools())} tools from {registry.plugin_root}")

    server = create_mcp_server(registry, settings)

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("MCP server stdio streams established")
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=settings.mcp_server_name,
                server_version=settings.mcp_server_version,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )
