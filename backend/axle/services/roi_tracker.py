"""ROI Tracker — creates ROI records for completed tasks and summarizes them.

Invariants:
    - record() writes cost only; revenue_change / roi_multiple start null
    - record_outcome() is the sole writer of measured fields (external hook)
    - summary() aggregates the most recent `limit` records (core/budget.roi_summary)
"""

import logging
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axle.core.budget import RoiSummary, roi_multiple, roi_summary
from axle.core.errors import ResourceNotFoundError
from axle.core.repository_protocols import TaskLike
from axle.models.roi_record import RoiRecord
from axle.services.task_store import utcnow

logger = logging.getLogger(__name__)


class RoiTracker:
    def __init__(
        self, db: AsyncSession, clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._clock = clock

    async def record(self, task: TaskLike, cost_usd: float) -> RoiRecord:
        record = RoiRecord(
            task_id=task.id,
            action_type=task.kind,
            target_id=task.target_id,
            target_title=task.title,
            cost_usd=cost_usd,
            created_at=self._clock(),
        )
        self._db.add(record)
        await self._db.commit()
        return record

    async def recent(self, limit: int = 50) -> list[RoiRecord]:
        result = await self._db.execute(
            select(RoiRecord).order_by(RoiRecord.created_at.desc()).limit(limit),
        )
        return list(result.scalars().all())

    async def summary(self, limit: int = 50) -> RoiSummary:
        return roi_summary(await self.recent(limit))

    async def record_outcome(
        self,
        record_id: UUID,
        revenue_change: float,
        multiple: float | None = None,
    ) -> RoiRecord:
        record = await self._db.get(RoiRecord, record_id)
        if record is None:
            raise ResourceNotFoundError("RoiRecord", str(record_id))
        record.revenue_change = revenue_change
        record.roi_multiple = (
            multiple if multiple is not None
            else roi_multiple(revenue_change, record.cost_usd)
        )
        record.measured_at = self._clock()
        await self._db.commit()
        logger.info(f"ROI outcome recorded for task {record.task_id}")
        return record
