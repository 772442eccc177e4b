"""
Main entry point for the Huginn CLI.

This module provides the command-line interface for starting the MCP server
and inspecting the plugins it would load.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import click

from huginn.mcp.plugins.registry import PluginRegistry
from huginn.utils.config import get_settings
from huginn.utils.logging import configure_root_logging, setup_logging

logger = setup_logging(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Huginn - bounded MCP tool execution with hot-reloadable plugins."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    settings = get_settings()
    configure_root_logging(
        level="DEBUG" if verbose else settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )


@cli.command()
@click.option('--plugins', type=click.Path(path_type=Path),
              help='Plugin root directory')
@click.option('--timeout-ms', type=int, help='Default tool timeout in milliseconds')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def mcp(plugins: Optional[Path], timeout_ms: Optional[int], debug: bool) -> None:
    """Start the MCP server on stdio."""
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("huginn").setLevel(logging.DEBUG)

    settings = get_settings()
    if plugins is not None:
        settings.plugins_directory = str(plugins)
    if timeout_ms is not None:
        settings.tool_timeout_ms = timeout_ms

    validation = settings.validate_settings()
    for warning in validation.warnings:
        logger.warning(warning)
    if not validation.valid:
        for error in validation.errors:
            click.echo(f"Error: {error}", err=True)
        raise SystemExit(1)

    from huginn.mcp.server import run_mcp_server
    asyncio.run(run_mcp_server(settings))


@cli.command('list-tools')
@click.option('--plugins', type=click.Path(path_type=Path),
              help='Plugin root directory')
@click.option('--json', 'as_json', is_flag=True, help='Print the listing as JSON')
def list_tools(plugins: Optional[Path], as_json: bool) -> None:
    """Discover plugins and print the tools they provide."""
    registry = PluginRegistry(plugin_root=plugins)
    asyncio.run(registry.init())
    tools = registry.list_tools()

    if as_json:
        click.echo(json.dumps(tools, indent=2))
        return

    for tool in tools:
        source = registry.get_provenance(tool["name"]) or "builtin"
        click.echo(f"{tool['name']} [{source}] - {tool['description']}")


def main():
    cli()


if __name__ == '__main__':
    main()
