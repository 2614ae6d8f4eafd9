"""Task Management — create, list, inspect, approve and delete agent tasks.

Invariants:
    - Initial status and auto_approved are computed by TaskStore.create (never by the route)
    - Approve is the only human transition: needs_approval -> approved (409 otherwise)
    - Delete is unconditional; a missing task is a 404
    - List ordered (priority asc, created_at desc), capped at 50

Design Decisions:
    - Routes let AxleError propagate: the global handler maps NotFound -> 404,
      Conflict -> 409 with the structured envelope
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from axle.config import Settings, get_settings
from axle.core.domain_types import TaskStatus
from axle.infrastructure.database import get_db
from axle.schemas.task import TaskCreate, TaskResponse
from axle.services.task_store import MAX_LIST, TaskSpec, TaskStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.post(
    "", response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    body: TaskCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create a task; costs above the approval threshold wait for sign-off."""
    return await TaskStore(db).create(
        TaskSpec(
            kind=body.kind,
            title=body.title,
            description=body.description,
            priority=body.priority,
            estimated_cost=body.estimated_cost,
            target_id=body.target_id,
            scheduled_for=body.scheduled_for,
        ),
        settings.approval_threshold_usd,
    )


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    status_filter: TaskStatus | None = Query(None, alias="status"),
    limit: int = Query(MAX_LIST, ge=1, le=MAX_LIST),
    db: AsyncSession = Depends(get_db),
):
    """List tasks, highest priority first, newest first within a priority."""
    return await TaskStore(db).list_tasks(status_filter, limit)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: UUID, db: AsyncSession = Depends(get_db)):
    return await TaskStore(db).get(task_id)


@router.post("/{task_id}/approve", response_model=TaskResponse)
async def approve_task(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Human sign-off: the next tick runs the task whatever its cost."""
    task = await TaskStore(db).approve(task_id)
    logger.info("Task approved", extra={"task_id": str(task.id), "task_kind": task.kind})
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: UUID, db: AsyncSession = Depends(get_db)):
    """Discard a task (typically a stale proposal)."""
    await TaskStore(db).delete(task_id)
    logger.info("Task deleted", extra={"task_id": str(task_id)})
