"""BudgetLedgerEntry ORM — append-only spend record.

Invariants:
    - Rows are never updated or deleted
    - category holds a SpendCategory value; amount_usd >= 0
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from axle.db.base import Base


class BudgetLedgerEntry(Base):
    __tablename__ = "budget_ledger"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    category: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    amount_usd: Mapped[float] = mapped_column(Float, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
