"""AgentTask ORM — a unit of deferred, gated work for the scheduler.

Invariants:
    - id is UUID primary key
    - status holds a TaskStatus value; transitions go through TaskStore only
    - auto_approved is written once at creation and never changed
    - result_payload holds TaskResult.to_payload() output

Design Decisions:
    - (status, priority, created_at) index backs the eligibility query
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from axle.db.base import Base


class AgentTask(Base):
    """Agent task — lifecycle pending/needs_approval -> running -> completed|failed."""
    __tablename__ = "agent_tasks"
    __table_args__ = (
        Index("ix_agent_tasks_eligibility", "status", "priority", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    estimated_cost: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0,
    )
    actual_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    scheduled_for: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    auto_approved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    result_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
