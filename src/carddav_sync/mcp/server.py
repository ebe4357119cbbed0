"""MCP Server for CardDAV contact sync using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents trigger and inspect contact synchronization between a CardDAV
address book and a folder of Markdown notes.  While it runs, the server
also syncs on a timer.

Transport: stdio (for Claude Desktop/Code integration)
Protocol: JSON-RPC 2.0 over MCP

The same entry point offers one-shot CLI operation (``--once``,
``--test-connection``) for cron jobs and manual use.
"""

import argparse
import asyncio
import logging
import os
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config_loader import ensure_config
from ..core.async_utils import run_sync
from ..exceptions import CardDAVSyncError
from ..logger import DEFAULT_LOG_FILE, setup_logging
from ..sync.reporter import format_dry_run_preview, format_sync_report
from .lifespan import (
    SyncContext,
    build_context,
    load_logging_config,
    load_server_config,
    server_lifespan,
)
from .tools import ALL_SPECS, ToolRegistry, build_error_response
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("carddav-sync")

# Global context instance (initialized in lifespan)
_sync_context: SyncContext | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available)
# ---------------------------------------------------------------------------


async def _handle_ping(ctx: SyncContext, args: dict) -> types.CallToolResult:
    """Handle ping tool -- test CardDAV connectivity."""
    try:
        await run_sync(ctx.client.test_connection)
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Connected to address book {ctx.client.addressbook_url}",
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"CardDAV connection failed: {e}. Check CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test the connection to the CardDAV address book",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    mutating=False,
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> SyncContext:
    """Get the global SyncContext instance.

    Raises:
        RuntimeError: If the context is not initialized
    """
    if _sync_context is None:
        raise RuntimeError(
            "SyncContext not initialized. Server lifespan not started."
        )
    return _sync_context


def set_context(ctx: SyncContext | None) -> None:
    """Set the global SyncContext instance, or None to clear."""
    global _sync_context
    _sync_context = ctx


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available contact sync tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    ctx = get_context()
    try:
        return await get_registry().call_tool(name, arguments, ctx)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    This function sets up logging for MCP mode (file only, never stdout),
    validates the CardDAV connection via the lifespan manager, and starts
    the server with stdio transport for JSON-RPC communication.

    Args:
        config_overrides: Optional dict with config values to override
            (url, username, password, contacts_path, sync_interval,
            insecure, log_file, log_level, read_only)
    """
    overrides = config_overrides or {}

    # Must run BEFORE stdio_server so nothing reaches stdout during negotiation
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
        level=overrides.get("log_level"),
    )

    read_only = overrides.get("read_only", False)
    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of {len(all_specs)} tools enabled)",
            file=sys.stderr,
        )

    set_registry(registry)

    # set_context() is called here rather than in the lifespan: under
    # `python -m carddav_sync.mcp.server` this module is __main__, and an
    # import from lifespan.py would set the global on a second copy.
    async with server_lifespan(config_overrides=config_overrides) as ctx:
        set_context(ctx)
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="carddav-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_context(None)
            set_registry(None)


# ---------------------------------------------------------------------------
# One-shot CLI mode
# ---------------------------------------------------------------------------


def run_once(
    config_overrides: dict | None = None,
    dry_run: bool = False,
    test_only: bool = False,
) -> int:
    """Test the connection or run a single sync cycle, then return an exit code.

    Logs go to stderr (CLI mode); the report is printed to stdout.

    Returns:
        0 on success, 1 on configuration or connection failure or when the
        cycle aborted, 2 when the cycle completed with per-contact errors.
    """
    overrides = config_overrides or {}
    setup_logging(
        mode="cli",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
        level=overrides.get("log_level"),
    )

    try:
        config, _ = load_server_config(overrides)
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = build_context(config)

    try:
        if test_only:
            ctx.client.test_connection()
            print(f"Connected to address book {ctx.client.addressbook_url}")
            return 0
        report = ctx.engine.run(dry_run=dry_run)
    except CardDAVSyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))
    return 2 if report.errors else 0


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="CardDAV Sync - keep a CardDAV address book and Markdown contact notes in step",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the MCP server with default config (from .env or config.yml)
  carddav-sync

  # Override the address book URL
  carddav-sync --url https://dav.example.com/addressbooks/me/contacts/

  # Sync once and exit (e.g. from cron)
  carddav-sync --once

  # Preview what a sync would do
  carddav-sync --once --dry-run

  # Check URL and credentials
  carddav-sync --test-connection

  # Expose only read-only tools to MCP clients
  carddav-sync --read-only

  # Create .carddav_sync/config.yml with commented defaults
  carddav-sync --init-config

Note: Without --once or --test-connection this runs an MCP server on stdio.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override address book URL (takes precedence over CARDDAV_URL env var and config files)",
    )
    parser.add_argument(
        "--username",
        help="Override CardDAV username (takes precedence over CARDDAV_USERNAME env var and config files)",
    )
    parser.add_argument(
        "--password",
        help="Override CardDAV password (takes precedence over CARDDAV_PASSWORD env var and config files)"
        " (visible in process list -- prefer CARDDAV_PASSWORD env var for security)",
    )
    parser.add_argument(
        "--contacts-path",
        help="Folder holding the contact notes (default: Contacts)",
    )
    parser.add_argument(
        "--interval",
        type=int,
        metavar="MINUTES",
        help="Minutes between automatic syncs, 0 disables (default: 30)",
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
        help=f"Log file path (default in server mode: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Hide tools that modify contacts (only ping and contacts_sync_status remain)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sync cycle, print the report and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="With --once: show what would change without writing anything",
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Check the address book connection and exit",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a commented starter config file if none exists, then exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"carddav-sync version {__version__}",
    )

    args = parser.parse_args()

    if args.init_config:
        path = ensure_config()
        print(f"Config file: {path}", file=sys.stderr)
        sys.exit(0)

    if args.dry_run and not args.once:
        parser.error("--dry-run requires --once")
    if args.interval is not None and args.interval < 0:
        parser.error("--interval must be >= 0")

    # Build config overrides dict from CLI args
    config_overrides: dict = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.username:
        config_overrides["username"] = args.username
    if args.password:
        config_overrides["password"] = args.password
    if args.contacts_path:
        config_overrides["contacts_path"] = args.contacts_path
    if args.interval is not None:
        config_overrides["sync_interval"] = args.interval
    if args.insecure:
        config_overrides["insecure"] = True
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.read_only:
        config_overrides["read_only"] = True
    cli_keys = [k for k in config_overrides if k != "password"]

    try:
        log_settings = load_logging_config()
    except (ValueError, OSError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    # LOG_FILE in the environment outranks the config file
    if (
        log_settings.file
        and "log_file" not in config_overrides
        and not os.getenv("LOG_FILE")
    ):
        config_overrides["log_file"] = log_settings.file
    if log_settings.level:
        config_overrides["log_level"] = log_settings.level

    if args.once or args.test_connection:
        sys.exit(
            run_once(
                config_overrides,
                dry_run=args.dry_run,
                test_only=args.test_connection,
            )
        )

    # Log config overrides to stderr (before stdio transport starts)
    if cli_keys:
        print(
            f"Config overrides from CLI: {', '.join(cli_keys)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(
            main(
                config_overrides=config_overrides
                if config_overrides
                else None
            )
        )
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
