"""
Plugin Discovery for Huginn tool plugins.

Every immediate subdirectory of the plugin root is one plugin. Its module is
loaded from ``__init__.py`` or, when only a compiled copy is shipped, from
``__init__.pyc``. The module must export a ``tools`` collection (a lone
``tool`` export is accepted as a one-element collection). A directory that
fails to load is skipped; it never stops discovery of the others.
"""

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from huginn.mcp.plugins.base import Tool
from huginn.mcp.plugins.validation import is_tool, to_tool
from huginn.utils.errors import PluginLoadError
from huginn.utils.logging import setup_logging

logger = setup_logging(__name__)

MODULE_PREFIX = "huginn_plugin_"
MODULE_FILES = ("__init__.py", "__init__.pyc")


class PluginDiscovery:
    """Discovers and loads tool plugins from a plugin root directory."""

    def __init__(self, plugin_root: Path):
        """Initialize plugin discovery.

        Args:
            plugin_root: Directory whose subdirectories are plugins
        """
        self.plugin_root = Path(plugin_root)

    def find_plugin_dirs(self) -> list[Path]:
        """List candidate plugin directories, sorted by name.

        An unreadable or missing root yields an empty list.
        """
        try:
            entries = list(self.plugin_root.iterdir())
        except OSError as e:
            logger.warning(f"Cannot read plugin root {self.plugin_root}: {e}")
            return []

        return sorted(
            (entry for entry in entries
             if entry.is_dir() and not entry.name.startswith(('_', '.'))),
            key=lambda p: p.name,
        )

    def resolve_plugin_dir(self, name: str) -> Path | None:
        """Map a plugin directory name to its path under the root."""
        if not name or Path(name).name != name or name.startswith(('_', '.')):
            return None
        candidate = self.plugin_root / name
        return candidate if candidate.is_dir() else None

    def discover(self) -> list[tuple[str, list[Tool]]]:
        """Load every plugin directory.

        Returns:
            (plugin name, valid tools) pairs in directory order; directories
            that failed to load are absent
        """
        discovered = []
        for directory in self.find_plugin_dirs():
            try:
                tools = self.load_directory(directory)
            except PluginLoadError as e:
                logger.error(f"Skipping plugin {directory.name}: {e}")
                continue
            discovered.append((directory.name, tools))

        logger.info(
            f"Discovered {sum(len(tools) for _, tools in discovered)} tools "
            f"in {len(discovered)} plugins under {self.plugin_root}"
        )
        return discovered

    def load_directory(self, directory: Path) -> list[Tool]:
        """Load one plugin directory and return its valid tools.

        Invalid candidates are dropped with a warning.

        Raises:
            PluginLoadError: If the module cannot be loaded or exports no tools collection
        """
        module = self._load_module(directory)
        candidates = self._extract_candidates(module, directory.name)

        tools = []
        for index, candidate in enumerate(candidates):
            if not is_tool(candidate):
                logger.warning(f"Plugin {directory.name}: ignoring invalid tool export at index {index}")
                continue
            tools.append(to_tool(candidate))

        logger.debug(f"Plugin {directory.name} provides {[t.name for t in tools]}")
        return tools

    def _find_module_file(self, directory: Path) -> Path | None:
        for filename in MODULE_FILES:
            module_file = directory / filename
            if module_file.is_file():
                return module_file
        return None

    def _load_module(self, directory: Path) -> ModuleType:
        """Execute the plugin module from disk, always fresh."""
        plugin_name = directory.name
        module_file = self._find_module_file(directory)
        if module_file is None:
            raise PluginLoadError(f"No {' or '.join(MODULE_FILES)} found in {directory}", plugin_name)

        module_name = f"{MODULE_PREFIX}{plugin_name}"
        self._forget_module(module_name)

        spec = importlib.util.spec_from_file_location(
            module_name, module_file, submodule_search_locations=[str(directory)]
        )
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"Could not create module spec for {module_file}", plugin_name)

        module = importlib.util.module_from_spec(spec)
        # Registered before execution so the plugin can import its own submodules
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except KeyboardInterrupt:
            self._forget_module(module_name)
            raise
        except BaseException as e:
            # Includes SystemExit from a plugin calling sys.exit() at import
            self._forget_module(module_name)
            raise PluginLoadError(f"Failed to load {module_file}: {e}", plugin_name, e) from e

        return module

    @staticmethod
    def _forget_module(module_name: str) -> None:
        for name in [n for n in sys.modules if n == module_name or n.startswith(module_name + ".")]:
            del sys.modules[name]

    @staticmethod
    def _extract_candidates(module: ModuleType, plugin_name: str) -> list[Any]:
        tools = getattr(module, "tools", None)
        if tools is None:
            single = getattr(module, "tool", None)
            if single is not None:
                return [single]
            raise PluginLoadError("Module exports no 'tools' collection", plugin_name)

        if not isinstance(tools, (list, tuple)):
            raise PluginLoadError(
                f"'tools' export must be a list, got {type(tools).__name__}", plugin_name
            )
        return list(tools)
