"""Periodic and on-demand triggering of sync cycles.

``SyncScheduler`` owns the only piece of cross-run state: whether a cycle
is currently in flight.  Triggers that arrive while a cycle runs are
skipped, not queued.  The blocking ``SyncEngine.run`` call is executed in
a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone

from ..core.async_utils import run_sync
from .engine import SyncEngine
from .models import SyncReport

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Run ``engine`` every ``interval_minutes`` and on demand.

    Args:
        engine: The sync engine to drive.
        interval_minutes: Minutes between periodic runs; ``0`` disables
            periodic triggering (manual triggers still work).
    """

    def __init__(self, engine: SyncEngine, interval_minutes: int = 30) -> None:
        if interval_minutes < 0:
            raise ValueError("interval_minutes must be >= 0")
        self.engine = engine
        self.interval_minutes = interval_minutes

        self.last_report: SyncReport | None = None
        self.last_error: str | None = None
        self.last_started_at: str | None = None

        self._lock = asyncio.Lock()
        self._timer: asyncio.Task | None = None
        self._scheduled_run: asyncio.Future | None = None

    @property
    def running(self) -> bool:
        """Whether a sync cycle is in flight."""
        return self._lock.locked()

    @property
    def active(self) -> bool:
        """Whether the periodic timer is armed."""
        return self._timer is not None and not self._timer.done()

    # ------------------------------------------------------------------
    # Triggering
    # ------------------------------------------------------------------

    async def trigger(self, dry_run: bool = False) -> SyncReport | None:
        """Run one sync cycle now.

        Returns:
            The cycle's report, or ``None`` when skipped because another
            cycle is in flight.

        Raises:
            CardDAVSyncError: If the cycle aborts while fetching snapshots.
        """
        if self._lock.locked():
            logger.info("Contact sync already running, skipping trigger")
            return None

        async with self._lock:
            self.last_started_at = datetime.now(timezone.utc).isoformat()
            try:
                report = await run_sync(self.engine.run, dry_run=dry_run)
            except Exception as exc:
                self.last_error = str(exc)
                raise
            self.last_error = None
            if not dry_run:
                self.last_report = report
            return report

    async def _tick(self) -> None:
        try:
            await self.trigger()
        except Exception as exc:
            # Already reported by the engine's observer; keep the timer alive
            logger.debug("Scheduled contact sync failed: %s", exc)

    async def _loop(self) -> None:
        delay = self.interval_minutes * 60
        while True:
            await asyncio.sleep(delay)
            self._scheduled_run = asyncio.ensure_future(self._tick())
            # Cancelling the timer must not cancel a run mid-flight
            await asyncio.shield(self._scheduled_run)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm the periodic timer.  Must be called from a running event loop."""
        if self.active:
            return
        if self.interval_minutes == 0:
            logger.info("Periodic contact sync disabled (interval is 0)")
            return
        self._timer = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "Periodic contact sync every %d minutes", self.interval_minutes
        )

    async def _cancel_timer(self) -> None:
        if self._timer is None:
            return
        self._timer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._timer
        self._timer = None

    async def stop(self) -> None:
        """Disarm the timer and wait for an in-flight cycle to finish."""
        await self._cancel_timer()
        if self._scheduled_run is not None and not self._scheduled_run.done():
            await self._scheduled_run
        async with self._lock:
            pass
        logger.info("Contact sync scheduler stopped")

    async def restart(self, interval_minutes: int) -> None:
        """Re-arm the timer with a new interval.

        An in-flight cycle is left to finish on its own.
        """
        if interval_minutes < 0:
            raise ValueError("interval_minutes must be >= 0")
        await self._cancel_timer()
        self.interval_minutes = interval_minutes
        self.start()
