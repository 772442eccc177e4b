#!/usr/bin/env python3
"""
MCP Server entry point with proper stdio handling.

Logging goes to stderr while the MCP protocol uses stdout.
"""

import asyncio
import logging
import sys

from huginn.utils.config import get_settings
from huginn.utils.logging import configure_root_logging


def setup_mcp_logging() -> None:
    """Setup logging for MCP server - stderr plus optional file."""
    settings = get_settings()
    configure_root_logging(
        level=settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )


async def main() -> None:
    """Main entry point for MCP server."""
    setup_mcp_logging()
    logger = logging.getLogger(__name__)

    # Import server after logging is configured to avoid duplicate handlers
    from huginn.mcp.server import run_mcp_server

    settings = get_settings()
    validation = settings.validate_settings()
    for warning in validation.warnings:
        logger.warning(warning)
    if not validation.valid:
        for error in validation.errors:
            logger.error(error)
        sys.exit(1)

    try:
        await run_mcp_server(settings)
    except Exception as e:
        logger.error(f"Failed to start MCP server: {e}")
        sys.exit(1)


def main_sync():
    """Synchronous entry point for scripts."""
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
