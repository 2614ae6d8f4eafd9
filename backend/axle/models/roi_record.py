"""RoiRecord ORM — cost/outcome pairing for a completed revenue-relevant task.

Invariants:
    - cost_usd is fixed at creation
    - revenue_change / roi_multiple stay null until the external measurement
      process reports through RoiTracker.record_outcome
    - task_id is a plain column (no FK): deleting a task keeps its ROI history
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from axle.db.base import Base


class RoiRecord(Base):
    __tablename__ = "roi_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    action_type: Mapped[str] = mapped_column(String(40), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    target_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost_usd: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    revenue_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    roi_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    measured_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
