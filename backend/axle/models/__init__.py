"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - AgentTask is the only mutable entity; ledger, ROI cost and action log rows
      are append-only

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from axle.models.agent_task import AgentTask  # noqa: F401
from axle.models.budget_ledger import BudgetLedgerEntry  # noqa: F401
from axle.models.roi_record import RoiRecord  # noqa: F401
from axle.models.action_log import ActionLogEntry  # noqa: F401
from axle.models.shop_data import ShopSnapshot, ListingMetric  # noqa: F401
