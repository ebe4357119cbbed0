"""Shared pytest fixtures for carddav-sync tests."""

from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest
from dotenv import load_dotenv

from carddav_sync.config import Config
from carddav_sync.sync.models import Contact

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live CardDAV server",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live CardDAV server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        server_url="https://dav.example.com/addressbooks/testuser/contacts/",
        username="testuser",
        password="testpass",
        insecure=False,
    )


@pytest.fixture
def mock_carddav_client(mock_config):
    """Create a mock CardDAVClient instance for testing."""
    from carddav_sync.core.client import CardDAVClient

    client = MagicMock(spec=CardDAVClient)
    client.config = mock_config
    client.addressbook_url = mock_config.server_url
    return client


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating requests.Response mocks."""

    def _create_response(status_code=207, content=""):
        mock_response = Mock()
        mock_response.status_code = status_code
        raw = content.encode() if isinstance(content, str) else content
        mock_response.content = raw
        mock_response.text = raw.decode("utf-8")
        return mock_response

    return _create_response


@pytest.fixture
def contact_factory():
    """Factory fixture for building Contact instances with defaults."""

    def _create(uid="uid-1", full_name="Jane Doe", **fields):
        return Contact(uid=uid, full_name=full_name, **fields)

    return _create


@pytest.fixture
def write_note(tmp_path):
    """Factory fixture writing a note into ``tmp_path / 'Contacts'``.

    Returns a function ``(filename, text) -> Path``.
    """
    folder = tmp_path / "Contacts"
    folder.mkdir(exist_ok=True)

    def _write(filename: str, text: str) -> Path:
        path = folder / filename
        path.write_text(text, encoding="utf-8")
        return path

    return _write
