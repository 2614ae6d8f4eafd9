"""Action Log — best-effort audit trail writer and reader.

Invariants:
    - record() NEVER raises: write failures are logged and swallowed
    - detail truncated to DETAIL_CHARS
    - Each record() commits on its own so a later failure cannot drop it
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axle.infrastructure.database import safe_rollback
from axle.models.action_log import ActionLogEntry

logger = logging.getLogger(__name__)

DETAIL_CHARS = 500
MAX_TAKE = 200


class ActionLog:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def record(
        self,
        *,
        type: str = "info",
        label: str = "",
        detail: str = "",
        amount_usd: float | None = None,
        ok: bool = True,
    ) -> None:
        try:
            self._db.add(ActionLogEntry(
                type=type or "info",
                label=label or "",
                detail=(detail or "")[:DETAIL_CHARS],
                amount_usd=amount_usd,
                ok=ok,
            ))
            await self._db.commit()
        except Exception as e:
            logger.warning(f"Failed to write action log '{label}': {e}")
            await safe_rollback(self._db)

    async def recent(self, take: int = 50) -> list[ActionLogEntry]:
        take = max(1, min(take, MAX_TAKE))
        result = await self._db.execute(
            select(ActionLogEntry)
            .order_by(ActionLogEntry.created_at.desc())
            .limit(take),
        )
        return list(result.scalars().all())
