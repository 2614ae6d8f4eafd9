"""Task Dispatch — explicit routing from TaskKind to handler, plus lifecycle bookkeeping.

Invariants:
    - Every TaskKind maps to a handler in one visible dict — no getattr magic
    - dispatch() claims the task first (pending|approved -> running); a Conflict
      there propagates without touching the task
    - Success: running -> completed with result_payload and actual_cost, then
      action log, ROI record (REVENUE_KINDS) and api spend (>= 1 reasoning call)
    - Failure: running -> failed with error_message (<= ERROR_CHARS), action log
      entry with ok=False, and the original exception re-raised

Design Decisions:
    - actual_cost is the fixed per-call estimate, not metered usage
    - Bookkeeping after completion is best-effort: a completed task never
      regresses because an ROI or ledger write failed
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from axle.core.domain_types import (
    ELIGIBLE_STATUSES, REVENUE_KINDS, SpendCategory, TaskKind, TaskStatus,
)
from axle.core.errors import AxleError
from axle.core.repository_protocols import ReasoningClient, TaskLike
from axle.core.task_results import TaskResult
from axle.infrastructure.database import safe_rollback
from axle.models.agent_task import AgentTask
from axle.services.action_log import ActionLog
from axle.services.budget_ledger import BudgetLedger
from axle.services.handle_analysis import AnalysisHandlers
from axle.services.handle_content import ContentHandlers
from axle.services.roi_tracker import RoiTracker
from axle.services.task_store import TaskStore, utcnow

logger = logging.getLogger(__name__)

ERROR_CHARS = 500

Handler = Callable[[TaskLike], Awaitable[TaskResult]]


class TaskDispatcher:
    """Routes task.kind -> handler. Explicit registration, no auto-discovery."""

    def __init__(
        self,
        db: AsyncSession,
        reasoning: ReasoningClient,
        *,
        approval_threshold: float,
        cost_per_call: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._cost_per_call = cost_per_call
        self._clock = clock
        self._store = TaskStore(db, clock)
        self._actions = ActionLog(db)
        self._roi = RoiTracker(db, clock)
        self._ledger = BudgetLedger(db, clock=clock)
        analysis = AnalysisHandlers(
            db, reasoning, self._store, approval_threshold, clock,
        )
        content = ContentHandlers(reasoning)

        # Adding a kind requires editing this dict
        self._handlers: dict[TaskKind, Handler] = {
            TaskKind.ANALYSIS: analysis.analyze,
            TaskKind.SEO_OPTIMIZE: content.seo_optimize,
            TaskKind.LISTING_REFRESH: content.listing_refresh,
            TaskKind.PINTEREST_PIN: content.pinterest_pin,
            TaskKind.PINTEREST_STRATEGY: content.pinterest_strategy,
            TaskKind.AD_LAUNCH: content.generic,
            TaskKind.CUSTOM: content.generic,
        }
        self._fallback = content.generic

    @property
    def handlers(self) -> dict[TaskKind, Handler]:
        return dict(self._handlers)

    async def dispatch(self, task: TaskLike) -> AgentTask:
        """Run one task to a terminal status. Raises whatever the handler raised."""
        kind = TaskKind.parse(task.kind)
        handler = self._handlers.get(kind, self._fallback)
        claimed = await self._store.transition(
            task.id, ELIGIBLE_STATUSES, TaskStatus.RUNNING,
            started_at=self._clock(),
        )
        # A rollback expires ORM rows; the failure path only uses these values
        task_id, kind_label = claimed.id, claimed.kind
        extra = {"task_id": str(task_id), "task_kind": kind_label}
        logger.info("Task started", extra=extra)
        try:
            result = await handler(claimed)
            done = await self._store.transition(
                task_id, [TaskStatus.RUNNING], TaskStatus.COMPLETED,
                completed_at=self._clock(),
                result_payload=result.to_payload(),
                actual_cost=self._cost_per_call,
            )
        except Exception as e:
            await self._fail(task_id, kind_label, e)
            raise
        await self._record_completion(done, result)
        return done

    async def _record_completion(self, task: AgentTask, result: TaskResult) -> None:
        kind = TaskKind.parse(task.kind)
        cost = task.actual_cost or 0.0
        title = task.title
        extra = {"task_id": str(task.id), "task_kind": task.kind}
        await self._actions.record(
            type="task",
            label=f"task_completed: {task.kind}",
            detail=title,
            amount_usd=cost,
        )
        try:
            if kind in REVENUE_KINDS:
                await self._roi.record(task, cost)
            if result.reasoning_calls > 0:
                await self._ledger.record_spend(
                    SpendCategory.API,
                    self._cost_per_call * result.reasoning_calls,
                    note=f"{extra['task_kind']}: {title}"[:ERROR_CHARS],
                )
        except Exception as e:
            logger.error(f"Post-completion bookkeeping failed: {e}", extra=extra)
            await safe_rollback(self._db)
        logger.info("Task completed", extra=extra)

    async def _fail(self, task_id: UUID, kind: str, error: Exception) -> None:
        message = (str(error) or type(error).__name__)[:ERROR_CHARS]
        extra = {"task_id": str(task_id), "task_kind": kind}
        if isinstance(error, AxleError):
            extra["error_code"] = error.code
        logger.error(f"Task failed: {message}", extra=extra)
        await safe_rollback(self._db)
        try:
            await self._store.transition(
                task_id, [TaskStatus.RUNNING], TaskStatus.FAILED,
                completed_at=self._clock(),
                error_message=message,
            )
        except AxleError as e:
            logger.warning(f"Could not mark task failed: {e.message}", extra=extra)
            await safe_rollback(self._db)
        await self._actions.record(
            type="task",
            label=f"task_failed: {kind}",
            detail=message,
            ok=False,
        )
