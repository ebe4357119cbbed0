"""Core sync engine that reconciles the address book with the contact notes.

The ``SyncEngine`` runs one cycle:

1. Fetches a fresh snapshot of the remote contacts.
2. Lists the contact notes in the local collection.
3. Builds the plan (``build_plan``) by matching uids.
4. Applies each planned action in order.
5. Builds and returns a ``SyncReport``.

Failing to read either snapshot aborts the cycle before anything is
written.  Once the plan is being applied, error handling is per-contact:
a single failure is recorded and the run continues.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from ..exceptions import LocalStoreError
from .fields import to_remote_contact
from .interfaces import LocalStore, RemoteClient
from .models import PlannedAction, SyncAction, SyncReport, SyncResult
from .observer import LoggingObserver, SyncObserver
from .plan import build_plan

logger = logging.getLogger(__name__)


class SyncEngine:
    """Reconcile one remote address book with one local collection.

    The engine keeps no state between runs; every run starts from fresh
    snapshots of both sides.

    Args:
        remote: Remote address book client.
        local_store: Local contact store.
        collection_path: Folder holding the contact notes.
        observer: Receives cycle events; defaults to ``LoggingObserver``.
    """

    def __init__(
        self,
        remote: RemoteClient,
        local_store: LocalStore,
        collection_path: Path,
        observer: SyncObserver | None = None,
    ) -> None:
        self.remote = remote
        self.local_store = local_store
        self.collection_path = Path(collection_path)
        self.observer = observer or LoggingObserver()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> SyncReport:
        """Execute a full sync cycle.

        Args:
            dry_run: If ``True``, compute the plan but do not apply it.

        Returns:
            A ``SyncReport`` summarising what was (or would be) done.

        Raises:
            RemoteFetchError: If the remote snapshot cannot be fetched.
            LocalStoreError: If the local collection cannot be listed.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        self.observer.cycle_started()

        try:
            remote_contacts = list(self.remote.fetch_contacts())
            local_records = list(
                self.local_store.list_contacts(self.collection_path)
            )
        except Exception as exc:
            self.observer.cycle_failed(exc)
            raise

        plan = build_plan(remote_contacts, local_records)
        logger.debug(
            "Planned %d actions from %d remote and %d local contacts",
            len(plan),
            len(remote_contacts),
            len(local_records),
        )

        results: list[SyncResult] = []
        for planned in plan:
            if dry_run:
                results.append(self._result(planned, success=True))
                continue

            try:
                results.append(self._apply(planned))
            except Exception as exc:
                logger.debug(
                    "Error applying %s for %s: %s",
                    planned.action.value,
                    planned.contact.uid,
                    exc,
                )
                self.observer.contact_failed(
                    planned.contact.uid, planned.action, exc
                )
                results.append(
                    self._result(planned, success=False, error=str(exc))
                )

        report = SyncReport(
            dry_run=dry_run,
            remote_count=len(remote_contacts),
            local_count=len(local_records),
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )
        self.observer.cycle_completed(report)
        return report

    # ------------------------------------------------------------------
    # Action execution
    # ------------------------------------------------------------------

    def _apply(self, planned: PlannedAction) -> SyncResult:
        """Apply one planned action and return its result."""
        if planned.action == SyncAction.UPDATE_LOCAL:
            if planned.record is None:
                raise LocalStoreError(
                    f"No note to update for contact {planned.contact.uid}"
                )
            self.local_store.update_record(planned.record, planned.contact)
            logger.debug("Updated note %s", planned.record.path)
            return self._result(planned, success=True)

        if planned.action == SyncAction.CREATE_LOCAL:
            path = self.local_store.create_record(
                self.collection_path, planned.contact
            )
            logger.info("Created note %s", path)
            return self._result(planned, success=True, local_path=path)

        if planned.action == SyncAction.CREATE_REMOTE:
            self.remote.create_contact(to_remote_contact(planned.contact))
            return self._result(planned, success=True)

        raise ValueError(f"Unknown sync action: {planned.action}")

    @staticmethod
    def _result(
        planned: PlannedAction,
        success: bool,
        error: str | None = None,
        local_path: Path | None = None,
    ) -> SyncResult:
        if local_path is None and planned.record is not None:
            local_path = planned.record.path
        return SyncResult(
            uid=planned.contact.uid,
            full_name=planned.contact.full_name,
            action=planned.action,
            success=success,
            local_path=str(local_path) if local_path is not None else None,
            error=error,
        )
