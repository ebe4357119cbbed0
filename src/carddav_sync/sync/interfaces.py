"""Capability interfaces the sync engine depends on.

``SyncEngine`` only talks to these protocols.  The production
implementations are ``CardDAVClient`` and ``MarkdownContactStore``; tests
substitute in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

from .models import Contact, LocalRecord


@runtime_checkable
class RemoteClient(Protocol):
    """Remote address book.

    Every method raises ``RemoteFetchError`` on transport or protocol
    failure.
    """

    def fetch_contacts(self) -> Sequence[Contact]:
        """Return a fresh snapshot of all valid remote contacts."""
        ...

    def test_connection(self) -> None:
        """Check that the address book is reachable with these credentials."""
        ...

    def create_contact(self, contact: Contact) -> None:
        """Store *contact* remotely (uid, full name, email, phone only)."""
        ...


@runtime_checkable
class LocalStore(Protocol):
    """Local contact collection.

    Every method raises ``LocalStoreError`` on I/O failure.
    """

    def list_contacts(self, collection_path: Path) -> Sequence[LocalRecord]:
        """Return every contact note in the collection, creating it if absent."""
        ...

    def update_record(self, record: LocalRecord, contact: Contact) -> None:
        """Overwrite the known header fields of *record* with *contact*."""
        ...

    def create_record(self, collection_path: Path, contact: Contact) -> Path:
        """Create a new contact note and return its path."""
        ...
