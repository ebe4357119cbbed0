"""Tests for SyncScheduler: overlap skipping, timer lifecycle, status."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock, patch

import pytest

from carddav_sync.exceptions import RemoteFetchError
from carddav_sync.sync.models import SyncReport
from carddav_sync.sync.scheduler import SyncScheduler


def _report(dry_run: bool = False) -> SyncReport:
    return SyncReport(dry_run=dry_run, started_at="2026-01-01T00:00:00+00:00")


class BlockingEngine:
    """Engine whose run() blocks until released from the test."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def run(self, dry_run: bool = False) -> SyncReport:
        self.calls += 1
        self.entered.set()
        self.release.wait(timeout=5)
        return _report(dry_run)


async def _wait_for(event: threading.Event) -> None:
    await asyncio.to_thread(event.wait, 5)


_real_sleep = asyncio.sleep


async def _fast_sleep(delay: float) -> None:
    await _real_sleep(0)


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        SyncScheduler(MagicMock(), interval_minutes=-1)


async def test_trigger_returns_report():
    engine = MagicMock()
    engine.run.return_value = _report()
    scheduler = SyncScheduler(engine)

    report = await scheduler.trigger()

    assert report is engine.run.return_value
    engine.run.assert_called_once_with(dry_run=False)
    assert scheduler.last_report is report
    assert scheduler.last_started_at is not None
    assert not scheduler.running


async def test_dry_run_does_not_replace_last_report():
    engine = MagicMock()
    engine.run.side_effect = [_report(), _report(dry_run=True)]
    scheduler = SyncScheduler(engine)

    real = await scheduler.trigger()
    await scheduler.trigger(dry_run=True)

    assert scheduler.last_report is real


async def test_trigger_while_running_is_skipped():
    engine = BlockingEngine()
    scheduler = SyncScheduler(engine)

    first = asyncio.create_task(scheduler.trigger())
    await _wait_for(engine.entered)
    assert scheduler.running

    assert await scheduler.trigger() is None

    engine.release.set()
    assert isinstance(await first, SyncReport)
    assert engine.calls == 1


async def test_failure_recorded_and_raised():
    engine = MagicMock()
    engine.run.side_effect = RemoteFetchError("unreachable")
    scheduler = SyncScheduler(engine)

    with pytest.raises(RemoteFetchError):
        await scheduler.trigger()

    assert scheduler.last_error == "unreachable"
    assert not scheduler.running

    engine.run.side_effect = None
    engine.run.return_value = _report()
    await scheduler.trigger()
    assert scheduler.last_error is None


async def test_interval_zero_disables_timer():
    scheduler = SyncScheduler(MagicMock(), interval_minutes=0)
    scheduler.start()
    assert not scheduler.active
    await scheduler.stop()


async def test_timer_runs_engine_periodically():
    engine = MagicMock()
    engine.run.return_value = _report()
    scheduler = SyncScheduler(engine, interval_minutes=1)

    with patch(
        "carddav_sync.sync.scheduler.asyncio.sleep", new=_fast_sleep
    ):
        scheduler.start()
        assert scheduler.active
        for _ in range(50):
            if engine.run.call_count >= 2:
                break
            await _real_sleep(0.01)
        await scheduler.stop()

    assert engine.run.call_count >= 2
    assert not scheduler.active


async def test_timer_survives_failed_cycle():
    outcomes = iter([RemoteFetchError("down")])

    def _run(dry_run=False):
        error = next(outcomes, None)
        if error is not None:
            raise error
        return _report()

    engine = MagicMock()
    engine.run.side_effect = _run
    scheduler = SyncScheduler(engine, interval_minutes=1)

    with patch(
        "carddav_sync.sync.scheduler.asyncio.sleep", new=_fast_sleep
    ):
        scheduler.start()
        for _ in range(50):
            if engine.run.call_count >= 2:
                break
            await _real_sleep(0.01)
        await scheduler.stop()

    assert engine.run.call_count >= 2
    assert scheduler.last_error is None


async def test_stop_waits_for_in_flight_run():
    engine = BlockingEngine()
    scheduler = SyncScheduler(engine, interval_minutes=1)

    with patch(
        "carddav_sync.sync.scheduler.asyncio.sleep", new=_fast_sleep
    ):
        scheduler.start()
        await _wait_for(engine.entered)

        stopping = asyncio.create_task(scheduler.stop())
        await _real_sleep(0.05)
        assert not stopping.done()

        engine.release.set()
        await stopping

    assert not scheduler.running
    assert scheduler.last_report is not None
    assert engine.calls == 1


async def test_restart_changes_interval():
    scheduler = SyncScheduler(MagicMock(), interval_minutes=30)
    scheduler.start()
    assert scheduler.active

    await scheduler.restart(0)
    assert scheduler.interval_minutes == 0
    assert not scheduler.active

    await scheduler.restart(5)
    assert scheduler.active
    await scheduler.stop()
