"""Error response builders for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention.
"""

import mcp.types as types

from ...exceptions import (
    CardDAVSyncError,
    ConfigurationError,
    LocalStoreError,
    RemoteFetchError,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (connection_error, local_store_error, configuration_error, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("connection_error", "PROPFIND returned HTTP 401", "Check CARDDAV_USERNAME and CARDDAV_PASSWORD.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


# ---------------------------------------------------------------------------
# Sync error translation
# ---------------------------------------------------------------------------

_CORRECTIVE_ACTIONS: dict[str, str] = {
    "connection_error": (
        "Check CARDDAV_URL, CARDDAV_USERNAME, CARDDAV_PASSWORD, then run "
        "ping to verify the connection."
    ),
    "local_store_error": (
        "Check that the contacts folder exists and is writable "
        "(CARDDAV_CONTACTS_PATH)."
    ),
    "configuration_error": "Fix the configuration and restart the server.",
    "server_error": "Check the server log and retry later.",
}


def translate_sync_error(error: CardDAVSyncError) -> types.CallToolResult:
    """Translate a sync exception to a structured error response.

    Args:
        error: Any ``CardDAVSyncError`` raised while serving a tool call.

    Returns:
        CallToolResult with isError=True and corrective action
    """
    match error:
        case RemoteFetchError():
            error_type = "connection_error"
        case LocalStoreError():
            error_type = "local_store_error"
        case ConfigurationError():
            error_type = "configuration_error"
        case _:
            error_type = "server_error"

    return build_error_response(
        error_type, str(error), _CORRECTIVE_ACTIONS[error_type]
    )
