"""
Built-in management tool that hot-reloads plugins.

Without arguments every plugin is rediscovered. With ``plugin`` only the
directory owning that tool name (or the directory of that name) is reloaded.
"""

from typing import TYPE_CHECKING

from mcp import types

from huginn.mcp.cancellation import CancellationToken
from huginn.mcp.plugins.base import Tool, ToolArguments, text_result
from huginn.utils.errors import PluginLoadError, PluginNotFoundError
from huginn.utils.logging import setup_logging

if TYPE_CHECKING:
    from huginn.mcp.plugins.registry import PluginRegistry, ReloadOutcome

logger = setup_logging(__name__)

TOOL_NAME = "refresh_plugins"

INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "plugin": {
            "type": "string",
            "description": "Tool name or plugin directory to reload; omit to reload everything",
        },
    },
    "additionalProperties": False,
}


def format_outcome(outcome: "ReloadOutcome") -> str:
    if outcome.scope == "all":
        headline = f"Reloaded all plugins. {outcome.tool_count} tools available."
    else:
        headline = f"Reloaded plugin {outcome.plugin}. {outcome.tool_count} tools available."
    return f"{headline}\nTools: {', '.join(outcome.tool_names)}"


def create_refresh_plugins_tool(registry: "PluginRegistry") -> Tool:
    """Build the refresh_plugins tool bound to ``registry``."""

    async def handler(arguments: ToolArguments, token: CancellationToken) -> types.CallToolResult:
        plugin = (arguments or {}).get("plugin")
        if plugin is not None and not isinstance(plugin, str):
            return text_result("Argument 'plugin' must be a string", is_error=True)

        if not plugin:
            outcome = await registry.reload_all()
            return text_result(format_outcome(outcome))

        try:
            outcome = await registry.reload_plugin(plugin)
        except PluginNotFoundError as e:
            logger.warning(str(e))
            return text_result(str(e), is_error=True)
        except PluginLoadError as e:
            logger.error(f"Reload of {plugin} failed: {e}")
            return text_result(f"Plugin reload failed: {e}", is_error=True)

        return text_result(format_outcome(outcome))

    return Tool(
        name=TOOL_NAME,
        description="Reload tool plugins from disk without restarting the server",
        input_schema=INPUT_SCHEMA,
        handler=handler,
    )
