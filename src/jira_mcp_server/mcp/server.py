"""MCP Server for Jira integration using stdio transport.

This module implements the Model Context Protocol server that enables
AI agents to read Jira issues, projects, users and field metadata via
standardized tools.

Transport: stdio (for Claude Desktop/Code integration)
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys
from typing import Any

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..core.client import JiraClient
from ..logger import setup_logging
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("jira-mcp-server")

# Global client instance (set from the lifespan; None without credentials)
_jira_client: JiraClient | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_client() -> JiraClient | None:
    """Get the global JiraClient instance, or None if not configured."""
    return _jira_client


def set_client(client: JiraClient | None) -> None:
    """Set the global JiraClient instance.

    Args:
        client: JiraClient instance to set, or None to clear
    """
    global _jira_client
    _jira_client = client


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Returns:
        ToolRegistry instance

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance.

    Args:
        registry: ToolRegistry instance to set, or None to clear
    """
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available Jira tools.

    Works without credentials; descriptors come from the registry alone.
    """
    return get_registry().list_tools()


# The registry validates arguments itself so that invalid input yields the
# same success/error payload as every other failure.
@server.call_tool(validate_input=False)
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with a single JSON text item holding the ToolResult.
    """
    return await get_registry().dispatch(name, arguments, get_client())


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict[str, Any] | None = None):
    """Run the MCP server with stdio transport.

    This function sets up logging for MCP mode (file only, never stdout),
    builds the tool registry, resolves configuration via the lifespan
    manager, and starts the server with stdio transport.

    Args:
        config_overrides: Optional dict with config values to override
            (url, email, api_token, insecure, debug, log_file, log_format)
    """
    overrides = config_overrides or {}

    # Must run before stdio_server so nothing reaches stdout during
    # protocol negotiation
    setup_logging(
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
        debug_format=overrides.get("log_format", "text"),
    )

    registry = ToolRegistry(ALL_SPECS)
    logger.info("Registered %d tools", registry.tool_count())
    set_registry(registry)

    # set_client() is called here rather than in the lifespan: when run as
    # `python -m jira_mcp_server.mcp.server` this module is __main__, and a
    # `from . import server` in lifespan.py would patch a second copy.
    async with server_lifespan(config_overrides=config_overrides) as ctx:
        set_client(ctx["client"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="jira-mcp-server",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_client(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Jira MCP Server - Model Context Protocol server for Jira integration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or config.yml)
  jira-mcp-server

  # Jira Cloud: email + API token (basic auth)
  jira-mcp-server --url https://example.atlassian.net --email me@example.com

  # Jira Server / Data Center: personal access token (bearer auth)
  jira-mcp-server --url https://jira.example.com

  # Custom log file location
  jira-mcp-server --log-file /var/log/jira-mcp-server.log

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override Jira base URL (takes precedence over JIRA_BASE_URL env var and config files)",
    )
    parser.add_argument(
        "--email",
        help="Account email; switches to basic auth with the API token",
    )
    parser.add_argument(
        "--token",
        help="Override API token (visible in process list -- prefer JIRA_API_TOKEN env var)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path (default: LOG_FILE env var or /tmp/jira-mcp-server.log)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jira-mcp-server version {__version__}",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Build the config overrides dict from parsed CLI args."""
    config_overrides: dict[str, Any] = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.email:
        config_overrides["email"] = args.email
    if args.token:
        config_overrides["api_token"] = args.token
    if args.insecure:
        config_overrides["insecure"] = True
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.log_format:
        config_overrides["log_format"] = args.log_format
    return config_overrides


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()
    config_overrides = overrides_from_args(args)

    # Log config overrides to stderr (before stdio transport starts)
    if config_overrides:
        override_keys = [k for k in config_overrides if k != "api_token"]
        if override_keys:
            print(
                f"Config overrides from CLI: {', '.join(override_keys)}",
                file=sys.stderr,
            )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
