"""Contact reconciliation engine.

Public API for keeping a CardDAV address book and a folder of Markdown
contact notes in step.

Architecture
------------
Every run takes a fresh snapshot of both sides and matches them by
``uid``.  Remote contacts overwrite the known header fields of their
matching note or get a new note; notes unknown to the server are created
there.  Nothing is ever deleted and no state survives between runs.

Modules:

- ``engine``     -- ``SyncEngine``: runs one sync cycle.
- ``plan``       -- ``build_plan``: matches the two snapshots by uid.
- ``scheduler``  -- ``SyncScheduler``: periodic/manual triggering with
  overlap skipping.
- ``store``      -- ``MarkdownContactStore``: the local note collection.
- ``frontmatter`` -- header parsing and in-place rewriting.
- ``fields``     -- header keys, field sets, birthday normalization.
- ``interfaces`` -- ``RemoteClient`` and ``LocalStore`` protocols.
- ``observer``   -- ``SyncObserver`` protocol and ``LoggingObserver``.
- ``models``     -- ``Contact``, ``LocalRecord``, ``SyncAction``,
  ``PlannedAction``, ``SyncResult``, ``SyncReport``.
- ``reporter``   -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from carddav_sync.core import CardDAVClient
    from carddav_sync.sync import (
        MarkdownContactStore,
        SyncEngine,
        format_sync_report,
    )

    engine = SyncEngine(
        remote=CardDAVClient(config),
        local_store=MarkdownContactStore(),
        collection_path=Path("~/notes/Contacts"),
    )

    preview = engine.run(dry_run=True)
    print(format_sync_report(preview))

    report = engine.run()
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .interfaces import LocalStore, RemoteClient
from .models import (
    Contact,
    LocalRecord,
    PlannedAction,
    SyncAction,
    SyncReport,
    SyncResult,
)
from .observer import LoggingObserver, SyncObserver
from .plan import build_plan
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .scheduler import SyncScheduler
from .store import MarkdownContactStore

__all__ = [
    "Contact",
    "LocalRecord",
    "LocalStore",
    "LoggingObserver",
    "MarkdownContactStore",
    "PlannedAction",
    "RemoteClient",
    "SyncAction",
    "SyncEngine",
    "SyncObserver",
    "SyncReport",
    "SyncResult",
    "SyncScheduler",
    "build_plan",
    "format_dry_run_preview",
    "format_sync_report",
    "report_to_json",
]
