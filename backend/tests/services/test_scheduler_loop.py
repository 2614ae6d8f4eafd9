"""Scheduler Loop — tests for tick batching, gating, isolation and single-flight.

Tests cover:
    - a tick processes at most BATCH_SIZE (3) tasks, in priority order
    - a threshold lowered after creation holds the task instead of running it
    - approved tasks run even above the threshold
    - one failing task does not abort the batch, including an analysis task
      that read shop data first
    - a task deleted after being picked is skipped, in the gate hold and the claim
    - overlapping ticks: the second is a no-op while the first is in flight
    - kill switch suppresses the tick
    - unexpected errors are logged to the action log and release the guard
    - start/stop idempotency and timer cadence (startup delay, then period)
"""

import asyncio

from sqlalchemy import select

from axle.core.domain_types import TaskKind, TaskStatus
from axle.core.errors import UpstreamError
from axle.models.action_log import ActionLogEntry
from axle.models.shop_data import ListingMetric, ShopSnapshot
from axle.services.scheduler_loop import SchedulerLoop
from axle.services.task_store import TaskStore


async def _status(factory, task_id) -> str:
    async with factory() as db:
        return (await TaskStore(db).get(task_id)).status


async def _action_labels(factory) -> list[str]:
    async with factory() as db:
        result = await db.execute(select(ActionLogEntry.label))
        return list(result.scalars().all())


async def _seed_shop_data(factory, clock) -> None:
    async with factory() as db:
        db.add(ShopSnapshot(shop_id="shop-1", data={"sales": 12}, captured_at=clock.now))
        db.add(ListingMetric(
            listing_id="L-1", title="Blue mug", views=40, favorites=3, sales=1,
            captured_at=clock.now,
        ))
        await db.commit()


def _deleting(factory, task_id):
    """Reasoning response that deletes another task while the call is in flight."""
    async def _respond() -> str:
        async with factory() as db:
            await TaskStore(db).delete(task_id)
        return "ok"
    return _respond


# ─── batching ────────────────────────────────────────────────────

async def test_tick_processes_at_most_three_tasks(scheduler, make_task, reasoning, test_session_factory):
    tasks = [await make_task(title=f"t{i}") for i in range(5)]
    reasoning.queue(*["ok"] * 5)

    report = await scheduler.tick()

    assert report.processed == 3
    assert len(reasoning.calls) == 3
    statuses = [await _status(test_session_factory, t.id) for t in tasks]
    assert statuses.count(TaskStatus.COMPLETED.value) == 3
    assert statuses.count(TaskStatus.PENDING.value) == 2


async def test_tick_runs_in_priority_order(scheduler, make_task, reasoning, clock):
    low = await make_task(title="low", priority=8)
    clock.advance(seconds=1)
    high = await make_task(title="high", priority=1)
    reasoning.queue("a", "b")

    report = await scheduler.tick()

    assert report.completed == [str(high.id), str(low.id)]
    assert "high" in reasoning.calls[0]["user"]


async def test_empty_queue_tick_is_quiet(scheduler, reasoning):
    report = await scheduler.tick()
    assert report.processed == 0
    assert reasoning.calls == []


# ─── gating ──────────────────────────────────────────────────────

async def test_lowered_threshold_holds_pending_task(
    scheduler, make_task, reasoning, settings, test_session_factory,
):
    task = await make_task(estimated_cost=20.0)
    other = await make_task(title="cheap", estimated_cost=1.0)
    settings.approval_threshold_usd = 10.0
    reasoning.queue("ok")

    report = await scheduler.tick()

    assert report.held == [str(task.id)]
    assert report.completed == [str(other.id)]
    assert len(reasoning.calls) == 1
    assert await _status(test_session_factory, task.id) == TaskStatus.NEEDS_APPROVAL.value
    assert "needs_approval: custom" in await _action_labels(test_session_factory)


async def test_approved_task_runs_above_threshold(
    scheduler, make_task, store, reasoning, test_session_factory,
):
    task = await make_task(kind=TaskKind.AD_LAUNCH, estimated_cost=40.0)
    assert (await scheduler.tick()).processed == 0

    await store.approve(task.id)
    reasoning.queue("launched")
    report = await scheduler.tick()

    assert report.completed == [str(task.id)]
    assert await _status(test_session_factory, task.id) == TaskStatus.COMPLETED.value


# ─── isolation ───────────────────────────────────────────────────

async def test_failure_does_not_abort_batch(
    scheduler, make_task, reasoning, clock, test_session_factory,
):
    bad = await make_task(title="bad", priority=1)
    clock.advance(seconds=1)
    good = await make_task(title="good", priority=2)
    reasoning.queue(UpstreamError(500, "boom"), "fine")

    report = await scheduler.tick()

    assert report.failed == [str(bad.id)]
    assert report.completed == [str(good.id)]
    async with test_session_factory() as db:
        failed = await TaskStore(db).get(bad.id)
    assert failed.status == TaskStatus.FAILED.value
    assert failed.error_message


async def test_analysis_failure_does_not_abort_batch(
    scheduler, make_task, reasoning, clock, test_session_factory,
):
    await _seed_shop_data(test_session_factory, clock)
    analysis = await make_task(kind=TaskKind.ANALYSIS, title="Daily analysis", priority=1)
    clock.advance(seconds=1)
    follow_up = await make_task(title="follow-up", priority=2)
    reasoning.queue(UpstreamError(529, "overloaded"), "fine")

    report = await scheduler.tick()

    assert report.failed == [str(analysis.id)]
    assert report.completed == [str(follow_up.id)]
    async with test_session_factory() as db:
        failed = await TaskStore(db).get(analysis.id)
    assert failed.status == TaskStatus.FAILED.value
    assert "overloaded" in failed.error_message
    assert "task_failed: analysis" in await _action_labels(test_session_factory)


async def test_task_deleted_before_gate_hold_is_skipped(
    scheduler, make_task, reasoning, settings, clock, test_session_factory,
):
    first = await make_task(title="first", priority=1)
    stale = await make_task(title="stale", priority=2, estimated_cost=10.0)
    last = await make_task(title="last", priority=3)
    settings.approval_threshold_usd = 5.0
    reasoning.queue(_deleting(test_session_factory, stale.id), "ok")

    report = await scheduler.tick()

    assert report.completed == [str(first.id), str(last.id)]
    assert report.skipped == [str(stale.id)]
    assert report.held == []


async def test_task_deleted_before_claim_is_skipped_not_failed(
    scheduler, make_task, reasoning, test_session_factory,
):
    first = await make_task(title="first", priority=1)
    stale = await make_task(title="stale", priority=2)
    last = await make_task(title="last", priority=3)
    reasoning.queue(_deleting(test_session_factory, stale.id), "ok")

    report = await scheduler.tick()

    assert report.completed == [str(first.id), str(last.id)]
    assert report.skipped == [str(stale.id)]
    assert report.failed == []
    assert len(reasoning.calls) == 2


async def test_failed_task_is_not_retried(scheduler, make_task, reasoning):
    await make_task()
    reasoning.queue(UpstreamError(500, "boom"))
    await scheduler.tick()

    report = await scheduler.tick()
    assert report.processed == 0
    assert len(reasoning.calls) == 1


async def test_unexpected_error_is_logged_and_guard_released(
    test_session_factory, reasoning, settings, clock, monkeypatch,
):
    async def broken_list_eligible(self, limit, now=None):
        raise RuntimeError("database went away")

    monkeypatch.setattr(TaskStore, "list_eligible", broken_list_eligible)
    loop = SchedulerLoop(test_session_factory, reasoning, settings, clock=clock)

    report = await loop.tick()

    assert report is not None and report.processed == 0
    assert not loop.busy
    assert "tick_error" in await _action_labels(test_session_factory)


# ─── single-flight ───────────────────────────────────────────────

async def test_overlapping_tick_is_noop(scheduler, make_task, reasoning, test_session_factory):
    await make_task(title="slow")
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow_response():
        entered.set()
        await release.wait()
        return "done"

    reasoning.queue(slow_response)
    first = asyncio.create_task(scheduler.tick())
    await entered.wait()

    assert scheduler.busy
    assert await scheduler.tick() is None

    release.set()
    report = await first
    assert report.processed == 1
    assert not scheduler.busy
    assert len(reasoning.calls) == 1


async def test_kill_switch_suppresses_tick(scheduler, make_task, reasoning, settings):
    await make_task()
    settings.kill_switch = True

    report = await scheduler.tick()

    assert report.suppressed is True
    assert reasoning.calls == []


# ─── timer ───────────────────────────────────────────────────────

def _blocking_sleep(delays, fire_limit):
    blocker = asyncio.Event()

    async def fake_sleep(seconds):
        delays.append(seconds)
        if len(delays) > fire_limit:
            await blocker.wait()

    return fake_sleep


async def test_timer_fires_after_startup_delay_then_every_period(
    test_session_factory, reasoning, settings,
):
    delays = []
    loop = SchedulerLoop(
        test_session_factory, reasoning, settings, sleep=_blocking_sleep(delays, 2),
    )
    fired = []

    async def fake_tick():
        fired.append(True)

    loop.tick = fake_tick
    loop.start(period=60, startup_delay=5)
    for _ in range(10):
        await asyncio.sleep(0)

    assert delays == [5, 60, 60]
    assert len(fired) == 2
    loop.stop()


async def test_start_and_stop_are_idempotent(test_session_factory, reasoning, settings):
    loop = SchedulerLoop(
        test_session_factory, reasoning, settings, sleep=_blocking_sleep([], 0),
    )

    assert loop.start() is True
    assert loop.start() is False
    assert loop.active

    assert loop.stop() is True
    assert loop.stop() is False
    assert not loop.active


async def test_stop_does_not_cancel_inflight_tick(
    scheduler, make_task, reasoning, test_session_factory,
):
    task = await make_task()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow_response():
        entered.set()
        await release.wait()
        return "done"

    reasoning.queue(slow_response)
    scheduler._sleep = _blocking_sleep([], 1)
    scheduler.start(period=60, startup_delay=0)
    await entered.wait()

    scheduler.stop()
    release.set()
    await scheduler.shutdown()

    assert await _status(test_session_factory, task.id) == TaskStatus.COMPLETED.value
