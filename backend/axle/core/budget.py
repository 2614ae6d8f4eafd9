"""Budget Math — period boundaries and spend/ROI aggregation.

Invariants:
    - PURE: callers fetch rows, these functions only shape and sum them
    - Periods are UTC calendar month / day
    - Every SpendCategory appears in a summary, zero when unspent
    - roi_summary: total_cost spans all records; average_roi only non-null multiples
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from axle.core.domain_types import SpendCategory


def start_of_day(now: datetime) -> datetime:
    now = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(now: datetime) -> datetime:
    return start_of_day(now).replace(day=1)


def lookback(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)


def _cents(value: float) -> float:
    return round(value, 2)


def spend_by_category(rows: Iterable[tuple[str, float | None]]) -> dict[str, float]:
    """Fold (category, amount) rows into a per-category dict covering every category."""
    totals = {c.value: 0.0 for c in SpendCategory}
    for category, amount in rows:
        key = SpendCategory(category).value
        totals[key] += float(amount or 0.0)
    return {k: _cents(v) for k, v in totals.items()}


def spend_period(rows: Iterable[tuple[str, float | None]]) -> dict:
    by_category = spend_by_category(rows)
    return {"total": _cents(sum(by_category.values())), "by_category": by_category}


class RoiLike(Protocol):
    cost_usd: float
    revenue_change: float | None
    roi_multiple: float | None


@dataclass(frozen=True)
class RoiSummary:
    tracked: int
    total_cost: float
    total_revenue_change: float
    average_roi: float | None

    def to_dict(self) -> dict:
        return {
            "tracked": self.tracked,
            "total_cost": self.total_cost,
            "total_revenue_change": self.total_revenue_change,
            "average_roi": self.average_roi,
        }


def roi_summary(records: Iterable[RoiLike]) -> RoiSummary:
    records = list(records)
    multiples = [r.roi_multiple for r in records if r.roi_multiple is not None]
    total_cost = sum(r.cost_usd or 0.0 for r in records)
    total_revenue = sum(
        r.revenue_change for r in records if r.revenue_change is not None
    )
    average = round(sum(multiples) / len(multiples), 1) if multiples else None
    return RoiSummary(
        tracked=len(multiples),
        total_cost=_cents(total_cost),
        total_revenue_change=_cents(total_revenue),
        average_roi=average,
    )


def roi_multiple(revenue_change: float, cost_usd: float) -> float | None:
    if not cost_usd or cost_usd <= 0:
        return None
    return revenue_change / cost_usd
