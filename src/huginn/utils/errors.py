"""
Custom exception classes for Huginn.
"""

from typing import Any


class HuginnError(Exception):
    """Base exception for all Huginn errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize Huginn error with enhanced information.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            suggestions: List of suggested remediation steps
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigurationError(HuginnError):
    """Raised when there is an issue with the application configuration."""
    pass


class ValidationError(HuginnError):
    """Raised when input data fails validation."""
    pass


class ToolExecutionError(HuginnError):
    """Raised when an MCP tool encounters an error during execution."""
    pass


class ToolTimeoutError(ToolExecutionError):
    """Raised when a tool handler does not settle within its deadline."""

    def __init__(self, tool_name: str, timeout_ms: int):
        super().__init__(
            f"Tool {tool_name} timed out after {timeout_ms} ms",
            context={"tool": tool_name, "timeout_ms": timeout_ms},
        )
        self.tool_name = tool_name
        self.timeout_ms = timeout_ms


class ToolCancelledError(ToolExecutionError):
    """Raised by a handler that observed its cancellation token."""
    pass


class PluginError(HuginnError):
    """Raised when there's a plugin-related error."""
    pass


class PluginLoadError(PluginError):
    """Raised when a plugin directory cannot be loaded."""

    def __init__(self, message: str, plugin_name: str | None = None, cause: BaseException | None = None):
        super().__init__(message, context={"plugin": plugin_name})
        self.plugin_name = plugin_name
        self.cause = cause


class PluginNotFoundError(PluginError):
    """Raised when a reload target resolves to no plugin directory."""

    def __init__(self, target: str):
        super().__init__(f"Plugin not found: {target}", context={"plugin": target})
        self.target = target
