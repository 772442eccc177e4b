"""
Plugin Registry for Huginn tool plugins.

This module provides the registry that owns the loaded-tools table: which tool
answers to which name, and which plugin directory it came from. The table is
filled by discovery on ``init()`` and replaced by full or scoped reloads.

Reloads build the new table off to the side and swap it in with plain
assignments, so a lookup sees either the old table or the new one, never a
mix. Reloads are serialized by an ``asyncio.Lock``.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from mcp import types

from huginn.mcp.plugins.base import Tool
from huginn.mcp.plugins.discovery import PluginDiscovery
from huginn.utils.config import HuginnSettings, get_settings
from huginn.utils.errors import PluginLoadError, PluginNotFoundError
from huginn.utils.logging import setup_logging

logger = setup_logging(__name__)

BuiltinFactory = Callable[["PluginRegistry"], Tool]


@dataclass
class ReloadOutcome:
    """Summary of a completed reload."""

    scope: str
    plugin: str | None
    tool_names: list[str] = field(default_factory=list)

    @property
    def tool_count(self) -> int:
        return len(self.tool_names)


class PluginRegistry:
    """Registry of loaded tools with per-plugin provenance."""

    def __init__(
        self,
        plugin_root: Path | None = None,
        settings: HuginnSettings | None = None,
        builtin_tools: list[BuiltinFactory] | None = None,
    ):
        """Initialize the plugin registry.

        Args:
            plugin_root: Directory whose subdirectories are plugins; defaults to settings
            settings: Optional settings override
            builtin_tools: Factories for tools registered alongside discovered
                plugins; defaults to the refresh_plugins management tool
        """
        self.settings = settings or get_settings()
        root = plugin_root if plugin_root is not None else self.settings.get_plugins_directory()
        self.discovery = PluginDiscovery(root)

        if builtin_tools is None:
            from huginn.mcp.plugins.tools import get_builtin_tools
            builtin_tools = get_builtin_tools()
        self._builtin_factories = list(builtin_tools)

        # None while UNLOADED
        self._tools: dict[str, Tool] | None = None
        self._provenance: dict[str, str] = {}
        self._reload_lock = asyncio.Lock()
        self._builtin_names: frozenset[str] = frozenset()

        logger.info(f"Plugin registry initialized for {root}")

    @property
    def plugin_root(self) -> Path:
        return self.discovery.plugin_root

    @property
    def is_loaded(self) -> bool:
        return self._tools is not None

    async def init(self) -> None:
        """Run discovery once; later calls are no-ops."""
        async with self._reload_lock:
            if self._tools is not None:
                return
            self._swap(*self._build_full_table())

    def list_tools(self) -> list[dict[str, Any]]:
        """Public projection of every tool, in discovery order.

        Never triggers loading; empty until ``init()`` has run.
        """
        if self._tools is None:
            return []
        return [tool.to_list_item() for tool in self._tools.values()]

    def list_tool_names(self) -> list[str]:
        if self._tools is None:
            return []
        return list(self._tools)

    def get_tool(self, name: str) -> Tool | None:
        """Exact-match lookup in the current table."""
        if self._tools is None:
            return None
        return self._tools.get(name)

    def get_provenance(self, name: str) -> str | None:
        """Plugin directory a tool was loaded from; None for built-ins."""
        return self._provenance.get(name)

    def get_tool_definitions(self) -> list[types.Tool]:
        """Get MCP tool definitions for all loaded tools."""
        if self._tools is None:
            return []
        return [tool.get_tool_definition() for tool in self._tools.values()]

    async def reload_all(self) -> ReloadOutcome:
        """Discard the table and rediscover every plugin."""
        async with self._reload_lock:
            self._swap(*self._build_full_table())
            names = self.list_tool_names()
        logger.info(f"Full reload complete: {len(names)} tools")
        return ReloadOutcome(scope="all", plugin=None, tool_names=names)

    async def reload_plugin(self, target: str) -> ReloadOutcome:
        """Reload the plugin directory owning ``target``.

        ``target`` is a tool name or a plugin directory name. Only tools from
        that directory change: exported names that are built-in or owned by
        another directory are skipped with a warning.

        Raises:
            PluginNotFoundError: If ``target`` resolves to no plugin directory
            PluginLoadError: If the directory fails to load or yields no valid
                tool; the previously loaded tools stay registered
        """
        async with self._reload_lock:
            if self._tools is None:
                self._swap(*self._build_full_table())

            plugin_name = self._resolve_plugin(target)
            directory = self.discovery.resolve_plugin_dir(plugin_name)
            if directory is None:
                raise PluginNotFoundError(target)

            new_tools = [
                tool for tool in self.discovery.load_directory(directory)
                if self._accepts_scoped(plugin_name, tool.name)
            ]
            if not new_tools:
                raise PluginLoadError(f"Plugin {plugin_name} exported no valid tools", plugin_name)

            tools = {
                name: tool for name, tool in self._tools.items()
                if self._provenance.get(name) != plugin_name
            }
            provenance = {
                name: owner for name, owner in self._provenance.items()
                if owner != plugin_name
            }
            for tool in new_tools:
                tools[tool.name] = tool
                provenance[tool.name] = plugin_name
            self._swap(tools, provenance)
            names = self.list_tool_names()

        logger.info(f"Reloaded plugin {plugin_name}: {[t.name for t in new_tools]}")
        return ReloadOutcome(scope="plugin", plugin=plugin_name, tool_names=names)

    def _resolve_plugin(self, target: str) -> str:
        owner = self._provenance.get(target)
        return owner if owner is not None else target

    def _accepts_scoped(self, plugin_name: str, tool_name: str) -> bool:
        """Whether a scoped reload of ``plugin_name`` may register ``tool_name``.

        Built-in names are reserved, and names owned by another directory stay
        with that directory until a full reload.
        """
        if tool_name in self._builtin_names:
            logger.warning(f"Plugin {plugin_name}: tool {tool_name} shadows a built-in tool, ignoring it")
            return False
        owner = self._provenance.get(tool_name)
        if owner is not None and owner != plugin_name:
            logger.warning(f"Plugin {plugin_name}: tool {tool_name} is owned by plugin {owner}, ignoring it")
            return False
        return True

    def _build_full_table(self) -> tuple[dict[str, Tool], dict[str, str]]:
        tools: dict[str, Tool] = {}
        provenance: dict[str, str] = {}

        for factory in self._builtin_factories:
            tool = factory(self)
            tools[tool.name] = tool
        self._builtin_names = frozenset(tools)

        for plugin_name, plugin_tools in self.discovery.discover():
            for tool in plugin_tools:
                if tool.name in self._builtin_names:
                    logger.warning(f"Plugin {plugin_name}: tool {tool.name} shadows a built-in tool, ignoring it")
                    continue
                previous = provenance.get(tool.name)
                if previous is not None and previous != plugin_name:
                    logger.debug(f"Tool {tool.name} from {plugin_name} replaces the one from {previous}")
                tools[tool.name] = tool
                provenance[tool.name] = plugin_name

        return tools, provenance

    def _swap(self, tools: dict[str, Tool], provenance: dict[str, str]) -> None:
        self._tools = tools
        self._provenance = provenance

    def get_registry_info(self) -> dict[str, Any]:
        """Get information about the registry state."""
        return {
            "loaded": self.is_loaded,
            "plugin_root": str(self.plugin_root),
            "tools": self.list_tool_names(),
            "provenance": dict(self._provenance),
        }
