"""Task Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - TaskCreate.title: non-empty after stripping
    - priority 1-10 (default 5), estimated_cost >= 0 (default 0)
    - Status and auto_approved are never accepted from the client

Design Decisions:
    - kind typed as TaskKind: Pydantic rejects unknown kinds with a 400
    - from_attributes on responses: routes return ORM rows directly
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from axle.core.domain_types import (
    DEFAULT_PRIORITY, MAX_PRIORITY, MIN_PRIORITY, SpendCategory, TaskKind,
)


class TaskCreate(BaseModel):
    """Task creation — status is derived from estimated_cost, never supplied."""
    kind: TaskKind
    title: str = Field(min_length=1, max_length=500)
    description: str = Field("", max_length=10_000)
    priority: int = Field(DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    estimated_cost: float = Field(0.0, ge=0)
    target_id: str | None = Field(None, max_length=120)
    scheduled_for: datetime | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class TaskResponse(BaseModel):
    """Task response — public-facing task data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: str
    title: str
    description: str
    priority: int
    estimated_cost: float
    actual_cost: float | None = None
    target_id: str | None = None
    scheduled_for: datetime | None = None
    status: str
    auto_approved: bool
    result_payload: dict | None = None
    error_message: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class SpendCreate(BaseModel):
    """Manual ledger entry (ads and SEO spend made outside the agent)."""
    category: SpendCategory
    amount_usd: float = Field(ge=0)
    note: str | None = Field(None, max_length=500)


class RoiOutcome(BaseModel):
    """Measured outcome reported by the external measurement process."""
    revenue_change: float
    roi_multiple: float | None = None


class RoiRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    action_type: str
    target_id: str | None = None
    target_title: str | None = None
    cost_usd: float
    revenue_change: float | None = None
    roi_multiple: float | None = None
    created_at: datetime
    measured_at: datetime | None = None


class ActionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    label: str
    detail: str
    amount_usd: float | None = None
    ok: bool
    created_at: datetime
