"""Tests for error response builders."""

import pytest

from carddav_sync.exceptions import (
    CardDAVSyncError,
    ConfigurationError,
    LocalStoreError,
    RemoteFetchError,
)
from carddav_sync.mcp.tools.errors import (
    build_error_response,
    translate_sync_error,
)


class TestBuildErrorResponse:
    def test_format(self):
        result = build_error_response(
            "connection_error", "HTTP 401", "Check credentials."
        )

        assert result.isError is True
        assert len(result.content) == 1
        assert result.content[0].type == "text"
        assert result.content[0].text == (
            "Error (connection_error): HTTP 401\n\nAction: Check credentials."
        )


class TestTranslateSyncError:
    @pytest.mark.parametrize(
        "error,error_type,hint",
        [
            (RemoteFetchError("timed out"), "connection_error", "CARDDAV_URL"),
            (LocalStoreError("disk full"), "local_store_error", "CARDDAV_CONTACTS_PATH"),
            (ConfigurationError("bad url"), "configuration_error", "restart"),
            (CardDAVSyncError("other"), "server_error", "server log"),
        ],
    )
    def test_mapping(self, error, error_type, hint):
        result = translate_sync_error(error)

        text = result.content[0].text
        assert result.isError is True
        assert text.startswith(f"Error ({error_type}): {error}")
        assert hint in text
