"""Tests for the periodic sweep scheduler."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from sweeper import SweepScheduler


def make_manager(**kwargs):
    manager = MagicMock()
    manager.evaluate_expiry = AsyncMock(**kwargs)
    return manager


@pytest.mark.asyncio
async def test_sweeps_on_interval_and_stops():
    manager = make_manager(return_value=0)
    scheduler = SweepScheduler(manager, interval=0.01)

    scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert not scheduler.running
    assert manager.evaluate_expiry.await_count >= 2

    # at most the sweep already in flight finishes after stop
    calls = manager.evaluate_expiry.await_count
    await asyncio.sleep(0.05)
    assert manager.evaluate_expiry.await_count <= calls + 1


@pytest.mark.asyncio
async def test_start_twice_keeps_one_loop():
    scheduler = SweepScheduler(make_manager(return_value=0), interval=10)
    scheduler.start()
    first = scheduler._task
    scheduler.start()

    assert scheduler._task is first
    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_without_start():
    scheduler = SweepScheduler(make_manager(return_value=0), interval=10)
    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped():
    release = asyncio.Event()

    async def slow_sweep():
        await release.wait()
        return 0

    manager = make_manager(side_effect=slow_sweep)
    scheduler = SweepScheduler(manager, interval=10)

    first = scheduler.tick()
    await asyncio.sleep(0)
    assert scheduler.tick() is None
    assert scheduler.skipped_ticks == 1

    release.set()
    await first
    second = scheduler.tick()
    assert second is not None
    await second
    assert manager.evaluate_expiry.await_count == 2


@pytest.mark.asyncio
async def test_sweep_error_does_not_stop_the_loop():
    manager = make_manager(side_effect=RuntimeError("boom"))
    scheduler = SweepScheduler(manager, interval=0.01)

    scheduler.start()
    await asyncio.sleep(0.1)

    assert scheduler.running
    assert manager.evaluate_expiry.await_count >= 2
    await scheduler.stop()


@pytest.mark.asyncio
async def test_sweep_returns_deleted_count():
    scheduler = SweepScheduler(make_manager(return_value=3), interval=10)
    assert await scheduler.sweep() == 3
