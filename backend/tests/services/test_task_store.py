"""Task Store — tests for creation, eligibility and compare-and-set transitions.

Tests cover:
    - create derives status/auto_approved from cost vs threshold
    - list_eligible: pending/approved only, scheduled_for respected,
      ordered (priority asc, created_at asc)
    - transition: Conflict on status mismatch, NotFound on missing row,
      InvalidTransitionError before touching the DB
    - approve / delete / list_tasks / count
"""

from uuid import uuid4

import pytest

from axle.core.domain_types import TaskKind, TaskStatus
from axle.core.errors import (
    InvalidTransitionError, ResourceNotFoundError, TaskConflictError,
)


# ─── create ──────────────────────────────────────────────────────

async def test_create_under_threshold_is_pending(make_task):
    task = await make_task(estimated_cost=5.0)
    assert task.status == TaskStatus.PENDING.value
    assert task.auto_approved is True
    assert task.kind == TaskKind.CUSTOM.value


async def test_create_over_threshold_needs_approval(make_task):
    task = await make_task(estimated_cost=40.0)
    assert task.status == TaskStatus.NEEDS_APPROVAL.value
    assert task.auto_approved is False


async def test_create_stamps_clock_time(make_task, clock):
    task = await make_task()
    assert task.created_at.replace(tzinfo=None) == clock.now.replace(tzinfo=None)


# ─── list_eligible ───────────────────────────────────────────────

async def test_future_task_becomes_eligible_once_due(make_task, store, clock):
    task = await make_task(scheduled_for=clock.now.replace(minute=10))

    clock.advance(minutes=1)
    assert task.id not in [t.id for t in await store.list_eligible(10)]

    clock.advance(minutes=10)
    assert task.id in [t.id for t in await store.list_eligible(10)]


async def test_eligible_excludes_non_runnable_statuses(make_task, store):
    pending = await make_task(title="pending")
    held = await make_task(title="held", estimated_cost=99.0)
    approved = await make_task(title="approved", estimated_cost=99.0)
    await store.approve(approved.id)

    ids = [t.id for t in await store.list_eligible(10)]
    assert pending.id in ids
    assert approved.id in ids
    assert held.id not in ids


async def test_eligible_ordered_by_priority_then_age(make_task, store, clock):
    low = await make_task(title="low", priority=9)
    clock.advance(seconds=1)
    first_high = await make_task(title="high-1", priority=2)
    clock.advance(seconds=1)
    second_high = await make_task(title="high-2", priority=2)

    ids = [t.id for t in await store.list_eligible(10)]
    assert ids == [first_high.id, second_high.id, low.id]


async def test_eligible_respects_limit(make_task, store):
    for i in range(5):
        await make_task(title=f"t{i}")
    assert len(await store.list_eligible(3)) == 3


# ─── transition ──────────────────────────────────────────────────

async def test_transition_applies_patch(make_task, store, clock):
    task = await make_task()
    running = await store.transition(
        task.id, [TaskStatus.PENDING], TaskStatus.RUNNING, started_at=clock.now,
    )
    assert running.status == TaskStatus.RUNNING.value
    assert running.started_at is not None


async def test_transition_conflict_when_status_moved(make_task, store):
    task = await make_task()
    await store.transition(task.id, [TaskStatus.PENDING], TaskStatus.RUNNING)

    with pytest.raises(TaskConflictError) as exc:
        await store.transition(task.id, [TaskStatus.PENDING], TaskStatus.RUNNING)
    assert exc.value.actual == TaskStatus.RUNNING.value
    assert exc.value.http_status == 409


async def test_transition_missing_task_is_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.transition(uuid4(), [TaskStatus.PENDING], TaskStatus.RUNNING)


async def test_transition_outside_state_machine_rejected(make_task, store):
    task = await make_task()
    with pytest.raises(InvalidTransitionError):
        await store.transition(task.id, [TaskStatus.PENDING], TaskStatus.COMPLETED)
    assert (await store.get(task.id)).status == TaskStatus.PENDING.value


async def test_completed_task_cannot_be_failed(make_task, store):
    task = await make_task()
    await store.transition(task.id, [TaskStatus.PENDING], TaskStatus.RUNNING)
    await store.transition(task.id, [TaskStatus.RUNNING], TaskStatus.COMPLETED)
    with pytest.raises(TaskConflictError):
        await store.transition(task.id, [TaskStatus.RUNNING], TaskStatus.FAILED)


# ─── approve / delete / list ─────────────────────────────────────

async def test_approve_moves_needs_approval_to_approved(make_task, store):
    task = await make_task(estimated_cost=40.0)
    approved = await store.approve(task.id)
    assert approved.status == TaskStatus.APPROVED.value


async def test_approve_pending_task_conflicts(make_task, store):
    task = await make_task()
    with pytest.raises(TaskConflictError):
        await store.approve(task.id)


async def test_delete_removes_task(make_task, store):
    task = await make_task()
    await store.delete(task.id)
    with pytest.raises(ResourceNotFoundError):
        await store.get(task.id)


async def test_delete_missing_task_is_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.delete(uuid4())


async def test_list_tasks_orders_priority_then_newest(make_task, store, clock):
    old = await make_task(title="old", priority=3)
    clock.advance(seconds=1)
    new = await make_task(title="new", priority=3)
    clock.advance(seconds=1)
    urgent = await make_task(title="urgent", priority=1)

    ids = [t.id for t in await store.list_tasks()]
    assert ids == [urgent.id, new.id, old.id]


async def test_list_tasks_filters_by_status(make_task, store):
    await make_task(title="pending")
    held = await make_task(title="held", estimated_cost=99.0)
    tasks = await store.list_tasks(TaskStatus.NEEDS_APPROVAL)
    assert [t.id for t in tasks] == [held.id]


async def test_count_completed_since(make_task, store, clock):
    task = await make_task()
    await store.transition(task.id, [TaskStatus.PENDING], TaskStatus.RUNNING)
    await store.transition(
        task.id, [TaskStatus.RUNNING], TaskStatus.COMPLETED, completed_at=clock.now,
    )
    assert await store.count(TaskStatus.COMPLETED, clock.now.replace(hour=0)) == 1
    assert await store.count(TaskStatus.COMPLETED, clock.advance(days=1)) == 0
    assert await store.count(TaskStatus.PENDING) == 0
