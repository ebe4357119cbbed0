"""MCP tool handlers for contact sync.

Defines two tools:

- ``contacts_sync`` -- run a sync cycle now (with optional dry-run).
- ``contacts_sync_status`` -- show scheduler state and the last report.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...sync.reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from ..lifespan import SyncContext
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

CONTACTS_SYNC_TOOL = types.Tool(
    name="contacts_sync",
    description=(
        "Synchronize the CardDAV address book with the local contact notes. "
        "Remote contacts update or create notes; notes unknown to the server "
        "are created there. Nothing is deleted. Skipped if a sync is already "
        "running."
    ),
    annotations=types.ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "dry_run": {
                "type": "boolean",
                "default": False,
                "description": "Preview changes without applying them",
            },
        },
        "required": [],
    },
)

CONTACTS_SYNC_STATUS_TOOL = types.Tool(
    name="contacts_sync_status",
    description=(
        "Show contact sync state -- automatic sync interval, whether a sync "
        "is running, and the outcome of the last sync."
    ),
    annotations=types.ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
    inputSchema={
        "type": "object",
        "properties": {},
        "required": [],
    },
)


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_contacts_sync(
    ctx: SyncContext,
    args: dict[str, Any],
) -> types.CallToolResult:
    """Handle the ``contacts_sync`` tool."""
    dry_run = args.get("dry_run", False)
    if not isinstance(dry_run, bool):
        raise ValueError("dry_run must be a boolean")

    report = await ctx.scheduler.trigger(dry_run=dry_run)

    if report is None:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text="A contact sync is already running; this request was skipped.",
                )
            ],
            structuredContent={"skipped": True},
        )

    if dry_run:
        text = format_dry_run_preview(report)
    else:
        text = format_sync_report(report)

    structured = report_to_json(report)
    structured["skipped"] = False

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_contacts_sync_status(
    ctx: SyncContext,
    args: dict[str, Any],
) -> types.CallToolResult:
    """Handle the ``contacts_sync_status`` tool."""
    scheduler = ctx.scheduler
    last_report = scheduler.last_report

    if scheduler.interval_minutes:
        interval_desc = f"every {scheduler.interval_minutes} minutes"
    else:
        interval_desc = "disabled"

    lines = [
        "Contact sync status",
        f"  Address book:   {ctx.config.server_url}",
        f"  Contacts path:  {ctx.config.contacts_path}",
        f"  Automatic sync: {interval_desc}",
        f"  Running:        {'yes' if scheduler.running else 'no'}",
        f"  Last started:   {scheduler.last_started_at or 'never'}",
    ]
    if last_report is not None:
        lines.append("")
        lines.append(last_report.summary())
    if scheduler.last_error:
        lines.append("")
        lines.append(f"Last sync failed: {scheduler.last_error}")
    text = "\n".join(lines)

    structured = {
        "server_url": ctx.config.server_url,
        "contacts_path": ctx.config.contacts_path,
        "sync_interval": scheduler.interval_minutes,
        "running": scheduler.running,
        "last_started_at": scheduler.last_started_at,
        "last_error": scheduler.last_error,
        "last_report": (
            report_to_json(last_report) if last_report is not None else None
        ),
    }

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=CONTACTS_SYNC_TOOL,
        mutating=True,
        handler=_handle_contacts_sync,
    ),
    ToolSpec(
        tool=CONTACTS_SYNC_STATUS_TOOL,
        mutating=False,
        handler=_handle_contacts_sync_status,
    ),
]

SYNC_TOOLS: list[types.Tool] = [spec.tool for spec in SYNC_SPECS]
