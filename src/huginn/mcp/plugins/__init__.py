"""
Huginn Tool Plugin Architecture.

This module provides the plugin system for MCP tools: contract validation,
directory-based discovery, and a registry supporting hot reload.
"""

from .base import Tool, text_result
from .discovery import PluginDiscovery
from .registry import PluginRegistry, ReloadOutcome
from .validation import is_tool

__all__ = [
    "PluginDiscovery",
    "PluginRegistry",
    "ReloadOutcome",
    "Tool",
    "is_tool",
    "text_result",
]
