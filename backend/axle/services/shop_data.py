"""Shop Data Reader — read-only view of marketplace sync output for analysis."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axle.models.shop_data import ListingMetric, ShopSnapshot


class ShopDataReader:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def latest_snapshot(self) -> ShopSnapshot | None:
        result = await self._db.execute(
            select(ShopSnapshot).order_by(ShopSnapshot.captured_at.desc()).limit(1),
        )
        return result.scalar_one_or_none()

    async def recent_listings(self, limit: int = 20) -> list[ListingMetric]:
        result = await self._db.execute(
            select(ListingMetric)
            .order_by(ListingMetric.captured_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())
