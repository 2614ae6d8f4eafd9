"""Budget Ledger — append-only spend records and the informational policy snapshot.

Invariants:
    - record_spend() only ever INSERTs; nothing updates or deletes ledger rows
    - snapshot() is advisory: no code path blocks work because a cap is exceeded
    - Month/day windows are UTC calendar periods (core/budget.py)
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from axle.config import Settings
from axle.core.budget import spend_period, start_of_day, start_of_month
from axle.core.domain_types import SpendCategory
from axle.models.budget_ledger import BudgetLedgerEntry
from axle.services.task_store import utcnow

logger = logging.getLogger(__name__)


class BudgetLedger:
    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._settings = settings
        self._clock = clock

    async def record_spend(
        self,
        category: SpendCategory,
        amount_usd: float,
        note: str | None = None,
    ) -> BudgetLedgerEntry:
        if amount_usd < 0:
            raise ValueError("amount_usd must be non-negative")
        entry = BudgetLedgerEntry(
            category=SpendCategory(category).value,
            amount_usd=float(amount_usd),
            note=note,
            created_at=self._clock(),
        )
        self._db.add(entry)
        await self._db.commit()
        logger.info(f"Spend recorded: {entry.category} ${entry.amount_usd:.4f}")
        return entry

    async def entries_since(self, since: datetime) -> list[BudgetLedgerEntry]:
        result = await self._db.execute(
            select(BudgetLedgerEntry)
            .where(BudgetLedgerEntry.created_at >= since)
            .order_by(BudgetLedgerEntry.created_at.desc()),
        )
        return list(result.scalars().all())

    async def _sums_since(self, since: datetime) -> list[tuple[str, float]]:
        result = await self._db.execute(
            select(BudgetLedgerEntry.category, func.sum(BudgetLedgerEntry.amount_usd))
            .where(BudgetLedgerEntry.created_at >= since)
            .group_by(BudgetLedgerEntry.category),
        )
        return [(row[0], row[1]) for row in result.all()]

    async def snapshot(self) -> dict:
        """Caps, policy knobs and month/day spend — purely informational."""
        if self._settings is None:
            raise RuntimeError("BudgetLedger.snapshot() needs settings")
        s = self._settings
        now = self._clock()
        month = spend_period(await self._sums_since(start_of_month(now)))
        today = spend_period(await self._sums_since(start_of_day(now)))
        return {
            "mode": s.policy_mode,
            "overrun_max_usd": s.overrun_max_usd,
            "roi_min": s.roi_min,
            "risk_mode": s.risk_mode,
            "confidence_min": s.confidence_min,
            "approval_threshold_usd": s.approval_threshold_usd,
            "caps": {
                "total": s.cap_total_usd,
                "api": s.cap_api_usd,
                "seo": s.cap_seo_usd,
                "ads": s.cap_ads_usd,
            },
            "daily_caps": {
                "api": s.daily_cap_api_usd,
                "seo": s.daily_cap_seo_usd,
                "ads": s.daily_cap_ads_usd,
            },
            "spend": {"month_to_date": month, "today": today},
            "kill_switch": s.kill_switch,
        }
