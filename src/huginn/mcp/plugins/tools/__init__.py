"""
Built-in tools registered with every plugin registry.
"""

from .refresh_plugins import create_refresh_plugins_tool


def get_builtin_tools():
    """Get factories for all built-in tools."""
    return [
        create_refresh_plugins_tool,
    ]


__all__ = [
    "create_refresh_plugins_tool",
    "get_builtin_tools",
]
