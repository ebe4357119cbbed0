"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_sync_report`` -- full post-sync summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

from .models import SyncAction

_LABELS = {
    SyncAction.UPDATE_LOCAL: "Updated notes:",
    SyncAction.CREATE_LOCAL: "Created notes:",
    SyncAction.CREATE_REMOTE: "Created on server:",
}


def _describe(result: SyncResult) -> str:
    line = f"  {result.full_name} [{result.uid}]"
    if result.local_path:
        line += f" -> {result.local_path}"
    return line


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Contact sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {report.remote_count} remote and {report.local_count} "
        f"local contacts: "
        f"{len(report.updated_local)} updated, "
        f"{len(report.created_local)} created locally, "
        f"{len(report.created_remote)} created remotely, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    for action, label in _LABELS.items():
        succeeded = [
            r for r in report.results if r.action == action and r.success
        ]
        if succeeded:
            lines.append(label)
            lines.extend(_describe(r) for r in succeeded)
            lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(
                f"  {r.full_name} [{r.uid}] ({r.action.value}): {r.error}"
            )
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``[ACTION]`` followed by the contacts
    it applies to.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(
        f"Remote contacts: {report.remote_count}, "
        f"local contacts: {report.local_count}"
    )
    lines.append("")

    groups: dict[SyncAction, list[SyncResult]] = defaultdict(list)
    for r in report.results:
        groups[r.action].append(r)

    for action in _LABELS:
        if action not in groups:
            continue
        label = action.value.upper().replace("_", " ")
        lines.append(f"[{label}]")
        lines.extend(_describe(r) for r in groups[action])
        lines.append("")

    if not groups:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.

    Args:
        report: The sync report.

    Returns:
        Dict with counts and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "uid": r.uid,
            "full_name": r.full_name,
            "action": r.action.value,
            "success": r.success,
        }
        if r.local_path:
            entry["local_path"] = r.local_path
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "remote": report.remote_count,
            "local": report.local_count,
            "total": len(report.results),
            "updated_local": len(report.updated_local),
            "created_local": len(report.created_local),
            "created_remote": len(report.created_remote),
            "errors": len(report.errors),
        },
        "results": results_list,
    }
