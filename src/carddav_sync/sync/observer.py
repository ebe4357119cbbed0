"""Notifications emitted by the sync engine during a cycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import SyncAction, SyncReport

logger = logging.getLogger(__name__)


@runtime_checkable
class SyncObserver(Protocol):
    """Receives cycle and per-contact events from ``SyncEngine``."""

    def cycle_started(self) -> None: ...

    def cycle_completed(self, report: SyncReport) -> None: ...

    def cycle_failed(self, error: Exception) -> None: ...

    def contact_failed(
        self, uid: str, action: SyncAction, error: Exception
    ) -> None: ...


class LoggingObserver:
    """Default observer: routes every event to the module logger."""

    def cycle_started(self) -> None:
        logger.info("Contact sync started")

    def cycle_completed(self, report: SyncReport) -> None:
        logger.info(
            "Contact sync completed: %d updated locally, %d created locally, "
            "%d created remotely, %d errors",
            len(report.updated_local),
            len(report.created_local),
            len(report.created_remote),
            len(report.errors),
        )

    def cycle_failed(self, error: Exception) -> None:
        logger.error("Contact sync aborted: %s", error)

    def contact_failed(
        self, uid: str, action: SyncAction, error: Exception
    ) -> None:
        logger.error("Failed to %s contact %s: %s", action.value, uid, error)
