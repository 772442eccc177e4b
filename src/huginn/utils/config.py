"""
Configuration management for Huginn.

This module provides centralized configuration using Pydantic settings
with support for environment variables and .env files.
"""

from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []


class HuginnSettings(BaseSettings):
    """Huginn configuration settings."""

    # MCP server settings
    mcp_server_name: str = Field(default="huginn")
    mcp_server_version: str = Field(default="1.0.0")

    # Tool execution settings
    # The unprefixed MCP_TOOL_* names are kept for existing deployments
    tool_timeout_ms: int = Field(
        default=10000,
        description="Default wall-clock bound for a tool handler (milliseconds)",
        validation_alias=AliasChoices("HUGINN_TOOL_TIMEOUT_MS", "MCP_TOOL_TIMEOUT_MS", "tool_timeout_ms"),
    )
    tool_log_file: str = Field(
        default="logs/mcp-tools.log",
        description="JSON-lines file receiving one record per failed tool execution",
        validation_alias=AliasChoices("HUGINN_TOOL_LOG_FILE", "MCP_TOOL_LOG_FILE", "tool_log_file"),
    )

    # Plugin settings
    plugins_directory: str = Field(default="plugins", description="Directory whose subdirectories are tool plugins")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_structured: bool = Field(default=False, description="Emit operational logs as JSON")
    log_file: str | None = Field(default=None, description="Optional operational log file path")

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="HUGINN_",
        extra="ignore",
        populate_by_name=True,
    )

    def get_plugins_directory(self) -> Path:
        """Get plugins directory path as Path object."""
        return Path(self.plugins_directory).expanduser().resolve()

    def get_tool_log_path(self) -> Path:
        """Get tool failure log path as Path object.

        The parent directory is created by the writer, not here.
        """
        return Path(self.tool_log_file).expanduser()

    def get_log_file_path(self) -> Path | None:
        """Get operational log file path as Path object."""
        if not self.log_file:
            return None
        path = Path(self.log_file).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def validate_settings(self) -> ValidationResult:
        """Validate settings and return status information."""
        status = ValidationResult()

        if self.tool_timeout_ms <= 0:
            status.errors.append(f"Tool timeout must be positive, got {self.tool_timeout_ms} ms")
            status.valid = False

        plugins_dir = self.get_plugins_directory()
        if not plugins_dir.exists():
            status.warnings.append(f"Plugins directory does not exist: {plugins_dir}")
        elif not plugins_dir.is_dir():
            status.errors.append(f"Plugins path is not a directory: {plugins_dir}")
            status.valid = False

        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            status.errors.append(f"Unknown log level: {self.log_level}")
            status.valid = False

        return status


# Global settings instance
settings = HuginnSettings()


def get_settings() -> HuginnSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> HuginnSettings:
    """Reload settings from environment and return new instance."""
    global settings
    settings = HuginnSettings()
    return settings
