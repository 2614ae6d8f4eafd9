"""Budget & ROI — policy snapshot, manual spend, ROI outcomes, action log.

Invariants:
    - GET /policy is informational: caps are advisory, never enforced
    - Ledger is append-only through this surface (no update/delete routes)
    - PATCH /roi/{id} is the measurement hook; it only writes outcome fields
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from axle.config import Settings, get_settings
from axle.infrastructure.database import get_db
from axle.schemas.task import (
    ActionLogResponse, RoiOutcome, RoiRecordResponse, SpendCreate,
)
from axle.services.action_log import MAX_TAKE, ActionLog
from axle.services.budget_ledger import BudgetLedger
from axle.services.roi_tracker import RoiTracker

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["budget"])


@router.get("/policy")
async def get_policy(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Caps, policy knobs and month/day spend per category."""
    return await BudgetLedger(db, settings).snapshot()


@router.post("/budget/spend", status_code=status.HTTP_201_CREATED)
async def record_spend(body: SpendCreate, db: AsyncSession = Depends(get_db)):
    entry = await BudgetLedger(db).record_spend(
        body.category, body.amount_usd, body.note,
    )
    return {
        "id": str(entry.id),
        "category": entry.category,
        "amount_usd": entry.amount_usd,
        "note": entry.note,
        "created_at": entry.created_at.isoformat(),
    }


@router.patch("/roi/{record_id}", response_model=RoiRecordResponse)
async def record_roi_outcome(
    record_id: UUID, body: RoiOutcome, db: AsyncSession = Depends(get_db),
):
    return await RoiTracker(db).record_outcome(
        record_id, body.revenue_change, body.roi_multiple,
    )


@router.get("/actions", response_model=list[ActionLogResponse])
async def list_actions(
    take: int = Query(50, ge=1, le=MAX_TAKE),
    db: AsyncSession = Depends(get_db),
):
    """Most recent action log entries, newest first."""
    return await ActionLog(db).recent(take)
