"""
Huginn - bounded MCP tool execution with hot-reloadable plugins.
"""

__version__ = "1.0.0"
