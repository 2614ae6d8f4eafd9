"""Initial schema — agent_tasks, budget_ledger, roi_records, action_log, shop data.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "agent_tasks",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("priority", sa.Integer, nullable=False, server_default="5"),
        sa.Column("estimated_cost", sa.Float, nullable=False, server_default="0"),
        sa.Column("actual_cost", sa.Float, nullable=True),
        sa.Column("target_id", sa.String(120), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("auto_approved", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("result_payload", sa.JSON, nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_agent_tasks_eligibility", "agent_tasks",
        ["status", "priority", "created_at"],
    )

    op.create_table(
        "budget_ledger",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("category", sa.String(10), nullable=False),
        sa.Column("amount_usd", sa.Float, nullable=False),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_budget_ledger_category", "budget_ledger", ["category"])
    op.create_index("ix_budget_ledger_created_at", "budget_ledger", ["created_at"])

    op.create_table(
        "roi_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("task_id", UUID(as_uuid=True), nullable=False),
        sa.Column("action_type", sa.String(40), nullable=False),
        sa.Column("target_id", sa.String(120), nullable=True),
        sa.Column("target_title", sa.Text, nullable=True),
        sa.Column("cost_usd", sa.Float, nullable=False, server_default="0"),
        sa.Column("revenue_change", sa.Float, nullable=True),
        sa.Column("roi_multiple", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("measured_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_roi_records_task_id", "roi_records", ["task_id"])

    op.create_table(
        "action_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("type", sa.String(30), nullable=False, server_default="info"),
        sa.Column("label", sa.String(120), nullable=False, server_default=""),
        sa.Column("detail", sa.Text, nullable=False, server_default=""),
        sa.Column("amount_usd", sa.Float, nullable=True),
        sa.Column("ok", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_action_log_created_at", "action_log", ["created_at"])

    op.create_table(
        "shop_snapshots",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("shop_id", sa.String(120), nullable=True),
        sa.Column("data", sa.JSON, nullable=False),
        sa.Column("captured_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_shop_snapshots_captured_at", "shop_snapshots", ["captured_at"])

    op.create_table(
        "listing_metrics",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("listing_id", sa.String(120), nullable=False),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("favorites", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sales", sa.Integer, nullable=False, server_default="0"),
        sa.Column("data", sa.JSON, nullable=True),
        sa.Column("captured_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_listing_metrics_captured_at", "listing_metrics", ["captured_at"])


def downgrade() -> None:
    op.drop_table("listing_metrics")
    op.drop_table("shop_snapshots")
    op.drop_table("action_log")
    op.drop_table("roi_records")
    op.drop_table("budget_ledger")
    op.drop_table("agent_tasks")
