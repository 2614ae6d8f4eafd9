"""Domain Types — enums and constants shared across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - REVENUE_KINDS lists the kinds that produce an ROI record on completion

Design Decisions:
    - str Enums: stored as plain strings in the DB and serialize to JSON as-is
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class TaskKind(str, Enum):
    """What a task asks the agent to do. Each kind has one dispatcher handler."""
    ANALYSIS = "analysis"
    SEO_OPTIMIZE = "seo_optimize"
    LISTING_REFRESH = "listing_refresh"
    PINTEREST_PIN = "pinterest_pin"
    PINTEREST_STRATEGY = "pinterest_strategy"
    AD_LAUNCH = "ad_launch"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: object) -> "TaskKind":
        """Lenient lookup for model-proposed kinds — unknown values become CUSTOM."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CUSTOM


class TaskStatus(str, Enum):
    """Task lifecycle states — maps to DB `status` column."""
    PENDING = "pending"
    NEEDS_APPROVAL = "needs_approval"
    APPROVED = "approved"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SpendCategory(str, Enum):
    """Budget ledger categories."""
    API = "api"
    SEO = "seo"
    ADS = "ads"


REVENUE_KINDS = frozenset({
    TaskKind.SEO_OPTIMIZE,
    TaskKind.LISTING_REFRESH,
    TaskKind.AD_LAUNCH,
    TaskKind.PINTEREST_PIN,
    TaskKind.PINTEREST_STRATEGY,
})

ELIGIBLE_STATUSES = (TaskStatus.PENDING, TaskStatus.APPROVED)

MIN_PRIORITY = 1
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 5
