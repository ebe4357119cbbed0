"""Pydantic models for the contact sync engine.

Defines the core data contracts used across all sync modules:

- ``Contact``: The canonical contact shared by both stores.
- ``LocalRecord``: A note file paired with the contact read from its header.
- ``SyncAction``: Enum of possible sync operations.
- ``PlannedAction``: One entry of the per-run sync plan.
- ``SyncResult``: Outcome of applying one planned action.
- ``SyncReport``: Aggregate results for a full sync run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, field_validator


class Contact(BaseModel):
    """A contact as exchanged between the CardDAV server and the notes.

    ``uid`` is the sole identity: compared with plain, case-sensitive string
    equality on both sides.  A contact without ``uid`` or ``full_name``
    cannot be constructed; stores drop such records before reconciliation.

    Attributes:
        uid: Stable unique identifier shared by both stores.
        full_name: Display name; also names the local note file.
        email: First e-mail address.
        phone: First telephone number.
        organization: Organization, components joined with ", ".
        title: Job title.
        address: Postal address, components joined with ", ".
        birthday: ``YYYY-MM-DD``, or ``xxxx-MM-DD`` when the year is unknown.
        url: Home page.
    """

    uid: str
    full_name: str
    email: str = ""
    phone: str = ""
    organization: str = ""
    title: str = ""
    address: str = ""
    birthday: str = ""
    url: str = ""

    model_config = {"frozen": True}

    @field_validator("uid", "full_name")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator(
        "email",
        "phone",
        "organization",
        "title",
        "address",
        "birthday",
        "url",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class LocalRecord(BaseModel):
    """A contact note on disk.

    The path is the only durable handle: there is no persisted uid-to-path
    index, so the engine resolves uids by scanning the listed records.

    Attributes:
        path: Absolute path of the note file.
        contact: Contact projected from the note's header.
    """

    path: Path
    contact: Contact

    model_config = {"frozen": True}


class SyncAction(str, Enum):
    """Possible sync operations for one contact.

    There is no delete action: a contact missing on one side
    is recreated there, never removed from the other.
    """

    UPDATE_LOCAL = "update_local"
    CREATE_LOCAL = "create_local"
    CREATE_REMOTE = "create_remote"


class PlannedAction(BaseModel):
    """One step of the sync plan.

    Attributes:
        action: What to do.
        contact: For ``UPDATE_LOCAL``/``CREATE_LOCAL`` the remote contact to
            write locally; for ``CREATE_REMOTE`` the local contact.
        record: The matching local record (``None`` for ``CREATE_LOCAL``).
    """

    action: SyncAction
    contact: Contact
    record: LocalRecord | None = None

    model_config = {"frozen": True}


class SyncResult(BaseModel):
    """Result of applying one planned action.

    Attributes:
        uid: Contact UID.
        full_name: Contact display name.
        action: Sync action that was performed.
        success: Whether the operation succeeded.
        local_path: Path of the local note involved, if any.
        error: Error message if the operation failed.
    """

    uid: str
    full_name: str
    action: SyncAction
    success: bool
    local_path: str | None = None
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Attributes:
        dry_run: Whether this was a dry-run (no changes applied).
        remote_count: Number of valid contacts fetched from the server.
        local_count: Number of contact notes found locally.
        results: List of individual sync results.
        started_at: ISO 8601 timestamp when sync started.
        completed_at: ISO 8601 timestamp when sync completed.
    """

    dry_run: bool = False
    remote_count: int = 0
    local_count: int = 0
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with_action(self, action: SyncAction) -> list[SyncResult]:
        return [r for r in self.results if r.action == action]

    @property
    def updated_local(self) -> list[SyncResult]:
        """Results where action is UPDATE_LOCAL."""
        return self._with_action(SyncAction.UPDATE_LOCAL)

    @property
    def created_local(self) -> list[SyncResult]:
        """Results where action is CREATE_LOCAL."""
        return self._with_action(SyncAction.CREATE_LOCAL)

    @property
    def created_remote(self) -> list[SyncResult]:
        """Results where action is CREATE_REMOTE."""
        return self._with_action(SyncAction.CREATE_REMOTE)

    @property
    def errors(self) -> list[SyncResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    def summary(self) -> str:
        """Format a one-block summary of the sync run.

        Returns:
            Multi-line summary string with counts by action.
        """
        lines = [
            "Contact sync report" + (" (dry run)" if self.dry_run else ""),
            f"  Remote contacts: {self.remote_count}",
            f"  Local contacts:  {self.local_count}",
            f"  Updated local:   {len(self.updated_local)}",
            f"  Created local:   {len(self.created_local)}",
            f"  Created remote:  {len(self.created_remote)}",
            f"  Errors:          {len(self.errors)}",
            f"  Total:           {len(self.results)}",
        ]
        return "\n".join(lines)
