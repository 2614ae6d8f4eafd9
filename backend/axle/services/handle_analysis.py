"""Analysis Handler — reads shop data, asks for recommendations, fans out new tasks.

Invariants:
    - No snapshot and no listing metrics -> SkippedResult, zero reasoning calls
    - At most MAX_RECOMMENDATIONS tasks created per run, each via TaskStore.create
      (so the approval gate applies to every fanned-out task)
    - Unparseable output -> RawResult; ParseError never escapes this handler

Design Decisions:
    - Fan-out goes through the normal creation path, not a bulk insert:
      initial status and auto_approved are derived in exactly one place
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from axle.core.budget import lookback
from axle.core.errors import ParseError
from axle.core.prompts import ANALYSIS_SYSTEM, build_analysis_message
from axle.core.recommendations import parse_recommendations
from axle.core.repository_protocols import ReasoningClient, TaskLike
from axle.core.task_results import (
    AnalysisResult, RawResult, SkippedResult, TaskResult,
)
from axle.services.budget_ledger import BudgetLedger
from axle.services.shop_data import ShopDataReader
from axle.services.task_store import TaskSpec, TaskStore, utcnow

logger = logging.getLogger(__name__)

NO_DATA_REASON = "No shop data yet — connect Etsy and sync first"
LISTING_LIMIT = 20
SPEND_LOOKBACK_DAYS = 30


class AnalysisHandlers:
    """analysis kind — one reasoning call, zero to five new tasks."""

    def __init__(
        self,
        db: AsyncSession,
        reasoning: ReasoningClient,
        store: TaskStore,
        approval_threshold: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._reasoning = reasoning
        self._store = store
        self._approval_threshold = approval_threshold
        self._clock = clock
        self._shop = ShopDataReader(db)
        self._ledger = BudgetLedger(db, clock=clock)

    async def analyze(self, task: TaskLike) -> TaskResult:
        snapshot = await self._shop.latest_snapshot()
        listings = await self._shop.recent_listings(LISTING_LIMIT)
        if snapshot is None and not listings:
            logger.info(
                "Analysis skipped: no shop data",
                extra={"task_id": str(task.id), "task_kind": task.kind},
            )
            return SkippedResult(NO_DATA_REASON)

        spend = await self._ledger.entries_since(
            lookback(self._clock(), SPEND_LOOKBACK_DAYS),
        )
        message = build_analysis_message(
            snapshot.to_dict() if snapshot is not None else None,
            [listing.to_dict() for listing in listings],
            len(spend),
        )
        text = await self._reasoning.complete(ANALYSIS_SYSTEM, message)

        try:
            recommendations = parse_recommendations(text)
        except ParseError as e:
            logger.warning(
                f"Analysis output kept raw: {e.message}",
                extra={"task_id": str(task.id), "task_kind": task.kind},
            )
            return RawResult(text)

        created = []
        for rec in recommendations:
            new_task = await self._store.create(
                TaskSpec(
                    kind=rec.kind,
                    title=rec.title,
                    description=rec.reason,
                    priority=rec.priority,
                    estimated_cost=rec.estimated_cost,
                    target_id=rec.target_id,
                ),
                self._approval_threshold,
            )
            created.append(str(new_task.id))
        return AnalysisResult(
            recommendations=len(created),
            created_task_ids=created,
            response=text,
        )
