"""
MCP server, bounded tool execution and the plugin system.
"""
