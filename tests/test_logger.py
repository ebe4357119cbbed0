"""Tests for logger.py: setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to inspect what setup_logging passes,
since pytest's log capture plugin interferes with real basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from carddav_sync.logger import DEFAULT_LOG_FILE, JsonFormatter, setup_logging


@pytest.fixture
def mock_basic(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    with patch("carddav_sync.logger.logging.basicConfig") as mock:
        yield mock


def _kwargs(mock_basic):
    mock_basic.assert_called_once()
    return mock_basic.call_args[1]


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_cli_mode_logs_to_stderr(self, mock_basic):
        setup_logging(mode="cli")

        handlers = _kwargs(mock_basic)["handlers"]
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    def test_cli_mode_with_log_file_adds_file_handler(self, mock_basic, tmp_path):
        setup_logging(mode="cli", log_file=str(tmp_path / "cli.log"))

        handlers = _kwargs(mock_basic)["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 2
        assert len(file_handlers) == 1
        for h in file_handlers:
            h.close()

    def test_mcp_mode_never_uses_stdout(self, mock_basic, tmp_path):
        """The stdio transport owns stdout; MCP mode logs to a file only."""
        log_file = str(tmp_path / "mcp.log")
        setup_logging(mode="mcp", log_file=log_file)

        kwargs = _kwargs(mock_basic)
        assert kwargs["filename"] == log_file
        assert "handlers" not in kwargs

    def test_mcp_mode_default_log_file(self, mock_basic):
        setup_logging(mode="mcp")
        assert _kwargs(mock_basic)["filename"] == DEFAULT_LOG_FILE

    def test_mcp_mode_log_file_from_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_FILE", "/tmp/from-env.log")
        setup_logging(mode="mcp")
        assert _kwargs(mock_basic)["filename"] == "/tmp/from-env.log"

    @pytest.mark.parametrize(
        "mode,expected", [("mcp", logging.WARNING), ("cli", logging.INFO)]
    )
    def test_default_levels(self, mock_basic, mode, expected):
        setup_logging(mode=mode)
        assert _kwargs(mock_basic)["level"] == expected

    def test_env_log_level_honored(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging(mode="cli")
        assert _kwargs(mock_basic)["level"] == logging.ERROR

    def test_config_level_used_without_env(self, mock_basic):
        setup_logging(mode="mcp", level="debug")
        assert _kwargs(mock_basic)["level"] == logging.DEBUG

    def test_env_level_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", level="DEBUG")
        assert _kwargs(mock_basic)["level"] == logging.ERROR

    def test_debug_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", debug=True)
        assert _kwargs(mock_basic)["level"] == logging.DEBUG

    def test_json_format_uses_json_formatter(self, mock_basic):
        setup_logging(mode="cli", debug_format="json")

        handlers = _kwargs(mock_basic)["handlers"]
        assert isinstance(handlers[0].formatter, JsonFormatter)

    def test_third_party_silenced(self, mock_basic):
        setup_logging(mode="cli")
        for name in ("urllib3", "httpx", "httpcore"):
            assert logging.getLogger(name).level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, msg, args=(), exc_info=None, level=logging.INFO):
        return logging.LogRecord(
            name="carddav_sync.sync.engine",
            level=level,
            pathname="engine.py",
            lineno=1,
            msg=msg,
            args=args,
            exc_info=exc_info,
        )

    def test_basic_output(self):
        formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        data = json.loads(
            formatter.format(self._record("Fetched %d contacts", (3,)))
        )

        assert "ts" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "carddav_sync.sync.engine"
        assert data["msg"] == "Fetched 3 contacts"

    def test_includes_exception_on_one_line(self):
        formatter = JsonFormatter()
        try:
            raise ValueError("bad vCard")
        except ValueError:
            exc_info = sys.exc_info()

        output = formatter.format(
            self._record("failed", exc_info=exc_info, level=logging.ERROR)
        )

        assert "\n" not in output
        data = json.loads(output)
        assert "ValueError" in data["exc"]
        assert "bad vCard" in data["exc"]
