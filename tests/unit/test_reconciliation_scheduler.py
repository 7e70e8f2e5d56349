"""
Unit tests for the in-process reconciliation scheduler.
"""
import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest

from shelfkeeper.background_jobs.reconciliation_scheduler import ReconciliationScheduler
from shelfkeeper.modules.subscription_management.domain.services.reconciliation_service import SweepReport


class StubSweep:
    def __init__(self, delay: float = 0.0, error: Exception = None):
        self.delay = delay
        self.error = error
        self.runs = 0
        self.finished = 0

    async def run_sweep(self, should_stop=None):
        self.runs += 1
        if self.error is not None:
            raise self.error
        await asyncio.sleep(self.delay)
        self.finished += 1
        return SweepReport(checked=1)


def factory_for(sweep: StubSweep):
    @asynccontextmanager
    async def scope():
        yield sweep
    return scope


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ReconciliationScheduler(sweep_factory=factory_for(StubSweep()), interval=timedelta(0))
    with pytest.raises(ValueError):
        ReconciliationScheduler(sweep_factory=factory_for(StubSweep()), interval=-1.0)


@pytest.mark.asyncio
async def test_first_tick_runs_immediately():
    sweep = StubSweep()
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=3600)

    scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert sweep.runs == 1
    assert scheduler.ticks == 1
    assert scheduler.last_report.checked == 1
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_ticks_repeat_each_interval():
    sweep = StubSweep()
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=0.02)

    scheduler.start()
    await asyncio.sleep(0.15)
    await scheduler.stop()

    assert sweep.runs >= 3


@pytest.mark.asyncio
async def test_stop_wakes_idle_loop_promptly():
    sweep = StubSweep()
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=timedelta(hours=24))

    scheduler.start()
    await asyncio.sleep(0.02)
    await asyncio.wait_for(scheduler.stop(), timeout=1.0)

    assert sweep.runs == 1


@pytest.mark.asyncio
async def test_stop_drains_in_flight_tick():
    sweep = StubSweep(delay=0.1)
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=3600, drain_timeout=2.0)

    scheduler.start()
    await asyncio.sleep(0.02)
    await scheduler.stop()

    assert sweep.finished == 1


@pytest.mark.asyncio
async def test_stop_cancels_tick_after_drain_timeout():
    sweep = StubSweep(delay=5.0)
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=3600, drain_timeout=0.05)

    scheduler.start()
    await asyncio.sleep(0.02)
    await asyncio.wait_for(scheduler.stop(), timeout=1.0)

    assert sweep.runs == 1
    assert sweep.finished == 0
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_failed_tick_is_recorded_and_loop_survives():
    sweep = StubSweep(error=RuntimeError("database unavailable"))
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=0.02)

    scheduler.start()
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert sweep.runs >= 2
    assert scheduler.last_error == "database unavailable"
    assert scheduler.last_report is None


@pytest.mark.asyncio
async def test_run_once_and_status():
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(StubSweep()), interval=60)

    report = await scheduler.run_once()
    status = scheduler.status()

    assert report.checked == 1
    assert status["running"] is False
    assert status["interval_seconds"] == 60
    assert status["ticks"] == 1
    assert status["last_report"]["checked"] == 1
    assert status["last_error"] is None


@pytest.mark.asyncio
async def test_start_twice_keeps_single_loop():
    sweep = StubSweep()
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(sweep), interval=3600)

    scheduler.start()
    scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert sweep.runs == 1


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    scheduler = ReconciliationScheduler(sweep_factory=factory_for(StubSweep()), interval=60)
    await scheduler.stop()
    assert not scheduler.is_running
