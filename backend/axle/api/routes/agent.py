"""Agent Controls — scheduler status, start/stop and on-demand tick.

Invariants:
    - start/stop are idempotent: the response reports whether state changed
    - POST /tick goes through the same single-flight guard as the timer
    - "today" counts use the UTC calendar day
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from axle.core.budget import start_of_day
from axle.core.domain_types import TaskStatus
from axle.infrastructure.database import get_db
from axle.services.roi_tracker import RoiTracker
from axle.services.scheduler_loop import SchedulerLoop, get_scheduler
from axle.services.task_store import TaskStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/agent", tags=["agent"])


@router.get("/status")
async def agent_status(
    db: AsyncSession = Depends(get_db),
    scheduler: SchedulerLoop = Depends(get_scheduler),
):
    """Queue counts, today's outcomes and the ROI summary."""
    store = TaskStore(db)
    today = start_of_day(scheduler.clock())
    return {
        "active": scheduler.active,
        "busy": scheduler.busy,
        "pending": await store.count(TaskStatus.PENDING),
        "running": await store.count(TaskStatus.RUNNING),
        "needs_approval": await store.count(TaskStatus.NEEDS_APPROVAL),
        "completed_today": await store.count(TaskStatus.COMPLETED, today),
        "failed_today": await store.count(TaskStatus.FAILED, today),
        "roi": (await RoiTracker(db).summary()).to_dict(),
    }


@router.post("/start")
async def start_agent(scheduler: SchedulerLoop = Depends(get_scheduler)):
    changed = scheduler.start()
    return {"active": scheduler.active, "changed": changed}


@router.post("/stop")
async def stop_agent(scheduler: SchedulerLoop = Depends(get_scheduler)):
    changed = scheduler.stop()
    return {"active": scheduler.active, "changed": changed}


@router.post("/tick")
async def run_tick(scheduler: SchedulerLoop = Depends(get_scheduler)):
    """Run one guarded tick now."""
    report = await scheduler.tick()
    if report is None:
        return {"skipped": True, "reason": "A tick is already in progress"}
    return {"skipped": False, **report.to_dict()}
