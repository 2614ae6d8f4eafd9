"""Task Store — persistence and lifecycle transitions for AgentTask.

Invariants:
    - create() is the only writer of the initial status (task_state.initial_status)
    - transition() is an atomic compare-and-set:
      UPDATE ... WHERE id = :id AND status IN (:from) — zero rows -> Conflict or NotFound
    - Requested edges are checked against the state machine before touching the DB
    - list_eligible(): status in {pending, approved}, scheduled_for null or <= now,
      ordered (priority asc, created_at asc)
    - list_tasks(): ordered (priority asc, created_at desc), capped at MAX_LIST

Design Decisions:
    - Clock injected: eligibility and timestamps are deterministic in tests
    - Every mutating method commits; callers never hold a half-written task
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from axle.core.domain_types import (
    DEFAULT_PRIORITY, ELIGIBLE_STATUSES, TaskKind, TaskStatus,
)
from axle.core.errors import ResourceNotFoundError, TaskConflictError
from axle.core.task_state import check_transition, initial_status
from axle.models.agent_task import AgentTask

logger = logging.getLogger(__name__)

MAX_LIST = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TaskSpec:
    """Everything needed to create a task. Status is derived, never supplied."""
    kind: TaskKind
    title: str
    description: str = ""
    priority: int = DEFAULT_PRIORITY
    estimated_cost: float = 0.0
    target_id: str | None = None
    scheduled_for: datetime | None = None


class TaskStore:
    def __init__(
        self, db: AsyncSession, clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._clock = clock

    async def create(self, spec: TaskSpec, approval_threshold: float) -> AgentTask:
        status, auto_approved = initial_status(spec.estimated_cost, approval_threshold)
        task = AgentTask(
            kind=TaskKind(spec.kind).value,
            title=spec.title,
            description=spec.description or "",
            priority=spec.priority,
            estimated_cost=spec.estimated_cost,
            target_id=spec.target_id,
            scheduled_for=spec.scheduled_for,
            status=status.value,
            auto_approved=auto_approved,
            created_at=self._clock(),
        )
        self._db.add(task)
        await self._db.commit()
        await self._db.refresh(task)
        logger.info(
            f"Task created ({status.value})",
            extra={"task_id": str(task.id), "task_kind": task.kind},
        )
        return task

    async def get(self, task_id: UUID) -> AgentTask:
        task = await self._db.get(AgentTask, task_id, populate_existing=True)
        if task is None:
            raise ResourceNotFoundError("Task", str(task_id))
        return task

    async def list_eligible(
        self, limit: int, now: datetime | None = None,
    ) -> list[AgentTask]:
        now = now or self._clock()
        result = await self._db.execute(
            select(AgentTask)
            .where(
                AgentTask.status.in_([s.value for s in ELIGIBLE_STATUSES]),
                or_(
                    AgentTask.scheduled_for.is_(None),
                    AgentTask.scheduled_for <= now,
                ),
            )
            .order_by(AgentTask.priority.asc(), AgentTask.created_at.asc())
            .limit(limit),
        )
        return list(result.scalars().all())

    async def transition(
        self,
        task_id: UUID,
        from_statuses: Iterable[TaskStatus],
        to_status: TaskStatus,
        **patch,
    ) -> AgentTask:
        """Compare-and-set the status; patch columns ride along in the same UPDATE."""
        sources = [TaskStatus(s) for s in from_statuses]
        check_transition(sources, to_status)
        result = await self._db.execute(
            update(AgentTask)
            .where(
                AgentTask.id == task_id,
                AgentTask.status.in_([s.value for s in sources]),
            )
            .values(status=TaskStatus(to_status).value, **patch)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            current = await self._db.get(AgentTask, task_id, populate_existing=True)
            if current is None:
                raise ResourceNotFoundError("Task", str(task_id))
            raise TaskConflictError(
                str(task_id), [s.value for s in sources], current.status,
            )
        await self._db.commit()
        return await self.get(task_id)

    async def approve(self, task_id: UUID) -> AgentTask:
        return await self.transition(
            task_id, [TaskStatus.NEEDS_APPROVAL], TaskStatus.APPROVED,
        )

    async def delete(self, task_id: UUID) -> None:
        result = await self._db.execute(
            delete(AgentTask).where(AgentTask.id == task_id),
        )
        if result.rowcount == 0:
            raise ResourceNotFoundError("Task", str(task_id))
        await self._db.commit()

    async def list_tasks(
        self, status: TaskStatus | None = None, limit: int = MAX_LIST,
    ) -> list[AgentTask]:
        query = select(AgentTask).order_by(
            AgentTask.priority.asc(), AgentTask.created_at.desc(),
        )
        if status is not None:
            query = query.where(AgentTask.status == TaskStatus(status).value)
        query = query.limit(max(1, min(limit, MAX_LIST)))
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def count(
        self, status: TaskStatus, completed_since: datetime | None = None,
    ) -> int:
        query = select(func.count(AgentTask.id)).where(
            AgentTask.status == TaskStatus(status).value,
        )
        if completed_since is not None:
            query = query.where(AgentTask.completed_at >= completed_since)
        result = await self._db.execute(query)
        return int(result.scalar_one())
