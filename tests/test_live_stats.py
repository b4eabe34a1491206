"""Tests for live aggregation subscriptions."""
import asyncio

import pytest

from app.models.folder import FolderCreate
from app.services.live_stats import LiveAggregation
from app.services.stats_service import StatsService


@pytest.mark.asyncio
async def test_stale_result_is_discarded():
    gates = [asyncio.Event(), asyncio.Event()]
    calls = 0

    async def compute():
        nonlocal calls
        index = calls
        calls += 1
        await gates[index].wait()
        return index

    applied = []
    live = LiveAggregation(compute, applied.append)

    older = asyncio.create_task(live.refresh())
    newer = asyncio.create_task(live.refresh())
    await asyncio.sleep(0)

    gates[1].set()
    assert await newer is True
    gates[0].set()
    assert await older is False

    assert applied == [1]
    assert live.applied == 2


@pytest.mark.asyncio
async def test_results_in_order_are_all_applied():
    counter = 0

    async def compute():
        nonlocal counter
        counter += 1
        return counter

    applied = []
    live = LiveAggregation(compute, applied.append)

    assert await live.refresh() is True
    assert await live.refresh() is True
    assert applied == [1, 2]


@pytest.mark.asyncio
async def test_failed_computation_does_not_stop_subscription():
    outcomes = iter([RuntimeError("store down"), "ok"])

    async def compute():
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    applied = []
    live = LiveAggregation(compute, applied.append)

    assert await live.refresh() is False
    assert await live.refresh() is True
    assert applied == ["ok"]


@pytest.mark.asyncio
async def test_failed_callback_does_not_stop_subscription():
    received = []

    async def compute():
        return len(received)

    def callback(result):
        received.append(result)
        if result == 0:
            raise RuntimeError("dashboard closed")

    async def changes():
        yield {"operationType": "insert", "ns": {"coll": "files"}}

    live = LiveAggregation(compute, callback)
    await live.run(changes())

    assert received == [0, 1]
    assert live.applied == 2


@pytest.mark.asyncio
async def test_run_recomputes_per_change(store, folder_service):
    stats = StatsService(store)
    received = []

    async def callback(report):
        received.append(report.total_folders)

    async def changes():
        await folder_service.create_folder(FolderCreate(name="Area 1"))
        yield {"operationType": "insert", "ns": {"coll": "folders"}}

    live = LiveAggregation(stats.overall_progress, callback)
    await live.run(changes())

    assert live.issued == 2
    assert received[-1] == 1


class IdleStore:
    """Store whose change stream never produces anything."""

    async def watch(self, *collections):
        await asyncio.Event().wait()
        yield {}


@pytest.mark.asyncio
async def test_start_and_stop():
    async def compute():
        return "snapshot"

    applied = []
    live = LiveAggregation(compute, applied.append)

    task = live.start(IdleStore())
    for _ in range(5):
        await asyncio.sleep(0)
    await live.stop()

    assert applied == ["snapshot"]
    assert task.cancelled()
