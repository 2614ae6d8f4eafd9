"""Scheduler Loop — timer-driven, single-flight ticks over the task queue.

Invariants:
    - At most one tick runs at a time: the guard is a private asyncio.Lock used as
      a try-lock (checked and taken with no await in between)
    - A tick processes at most BATCH_SIZE (3) tasks, sequentially, in
      (priority asc, created_at asc) order — never in parallel
    - Each task is re-gated at tick time; a task over the threshold is moved
      pending -> needs_approval and consumes no slot
    - One task's failure never aborts the batch; a Conflict or a task deleted
      since it was picked skips the task
    - The guard is released unconditionally (async with), whatever the tick raised
    - start()/stop() are idempotent; stop() cancels only the timer, never an
      in-flight tick

Design Decisions:
    - Timer spawns each tick as its own task (fire-and-forget): cancelling the
      timer cannot interrupt a dispatched task mid-flight
    - clock and sleep injectable: tests drive ticks without real delays
    - Settings read at tick time: a threshold change applies to the next tick
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from axle.config import Settings
from axle.core.domain_types import TaskStatus
from axle.core.errors import AxleError, ResourceNotFoundError, TaskConflictError
from axle.core.policy_gate import may_run
from axle.core.repository_protocols import ReasoningClient
from axle.infrastructure.database import safe_rollback
from axle.services.action_log import ActionLog
from axle.services.task_dispatch import TaskDispatcher
from axle.services.task_store import TaskStore, utcnow

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
Sleep = Callable[[float], Awaitable[None]]

BATCH_SIZE = 3


@dataclass(frozen=True)
class QueuedTask:
    """Plain copy of a picked task. Survives session rollbacks, unlike the ORM row."""
    id: UUID
    kind: str
    title: str
    description: str
    priority: int
    estimated_cost: float
    target_id: str | None
    status: str

    @classmethod
    def from_row(cls, row) -> "QueuedTask":
        return cls(
            id=row.id,
            kind=row.kind,
            title=row.title,
            description=row.description,
            priority=row.priority,
            estimated_cost=row.estimated_cost,
            target_id=row.target_id,
            status=row.status,
        )


@dataclass
class TickReport:
    """What one tick did with each task it looked at."""
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    held: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    suppressed: bool = False

    @property
    def processed(self) -> int:
        return len(self.completed) + len(self.failed)

    def to_dict(self) -> dict:
        return {
            "completed": list(self.completed),
            "failed": list(self.failed),
            "held": list(self.held),
            "skipped": list(self.skipped),
            "suppressed": self.suppressed,
        }


class SchedulerLoop:
    """Owns the timer and the single-flight guard. Nothing else touches either."""

    def __init__(
        self,
        session_scope: SessionScope,
        reasoning: ReasoningClient,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = utcnow,
        sleep: Sleep = asyncio.sleep,
    ):
        self._session_scope = session_scope
        self._reasoning = reasoning
        self._settings = settings
        self._clock = clock
        self._sleep = sleep
        self._guard = asyncio.Lock()
        self._timer: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def busy(self) -> bool:
        return self._guard.locked()

    @property
    def clock(self) -> Callable[[], datetime]:
        return self._clock

    # ─── Controls ────────────────────────────────────────────────

    def start(
        self, period: float | None = None, startup_delay: float | None = None,
    ) -> bool:
        """Start the timer. Returns False if it was already running."""
        if self.active:
            return False
        period = period if period is not None else self._settings.agent_interval_seconds
        delay = (
            startup_delay if startup_delay is not None
            else self._settings.agent_startup_delay_seconds
        )
        self._timer = asyncio.get_running_loop().create_task(
            self._run(period, delay), name="axle-scheduler-timer",
        )
        logger.info(f"Scheduler started (every {period}s, first tick in {delay}s)")
        return True

    def stop(self) -> bool:
        """Stop the timer. Returns False if it was not running."""
        if not self.active:
            self._timer = None
            return False
        self._timer.cancel()
        self._timer = None
        logger.info("Scheduler stopped")
        return True

    async def shutdown(self) -> None:
        """Stop the timer and wait for an in-flight tick to finish."""
        self.stop()
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

    async def _run(self, period: float, delay: float) -> None:
        await self._sleep(delay)
        while True:
            self._fire()
            await self._sleep(period)

    def _fire(self) -> None:
        task = asyncio.get_running_loop().create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    # ─── Tick ────────────────────────────────────────────────────

    async def tick(self) -> TickReport | None:
        """Run one batch. Returns None when another tick holds the guard."""
        if self._guard.locked():
            logger.debug("Tick skipped: previous tick still running")
            return None
        async with self._guard:
            report = TickReport()
            if self._settings.kill_switch:
                logger.info("Tick suppressed: kill switch is set")
                report.suppressed = True
                return report
            try:
                async with self._session_scope() as db:
                    await self._run_batch(db, report)
            except Exception as e:
                logger.error(f"Tick aborted: {e}", exc_info=True)
                await self._record_tick_error(e)
            return report

    async def _run_batch(self, db: AsyncSession, report: TickReport) -> None:
        settings = self._settings
        store = TaskStore(db, self._clock)
        actions = ActionLog(db)
        dispatcher = TaskDispatcher(
            db,
            self._reasoning,
            approval_threshold=settings.approval_threshold_usd,
            cost_per_call=settings.cost_per_call_usd,
            clock=self._clock,
        )
        # Rows are copied out: a rollback in one task must not expire the next
        batch = [
            QueuedTask.from_row(row)
            for row in await store.list_eligible(BATCH_SIZE)
        ]
        if batch:
            logger.info("Tick picked tasks", extra={"batch_size": len(batch)})

        for task in batch:
            task_id = str(task.id)
            extra = {"task_id": task_id, "task_kind": task.kind}

            if not may_run(task, settings.approval_threshold_usd):
                await self._hold(db, store, actions, task, report)
                continue

            try:
                await dispatcher.dispatch(task)
                report.completed.append(task_id)
            except (TaskConflictError, ResourceNotFoundError) as e:
                logger.warning(f"Task skipped: {e.message}", extra=extra)
                await safe_rollback(db)
                report.skipped.append(task_id)
            except Exception as e:
                if isinstance(e, AxleError):
                    extra["error_code"] = e.code
                logger.error(f"Task isolated after failure: {e}", extra=extra)
                report.failed.append(task_id)

    async def _hold(
        self,
        db: AsyncSession,
        store: TaskStore,
        actions: ActionLog,
        task: QueuedTask,
        report: TickReport,
    ) -> None:
        task_id = str(task.id)
        try:
            await store.transition(
                task.id, [TaskStatus.PENDING], TaskStatus.NEEDS_APPROVAL,
            )
        except (TaskConflictError, ResourceNotFoundError) as e:
            logger.warning(f"Gate hold skipped: {e.message}", extra={"task_id": task_id})
            await safe_rollback(db)
            report.skipped.append(task_id)
            return
        logger.info(
            "Task held for approval: cost above threshold",
            extra={"task_id": task_id, "task_kind": task.kind},
        )
        report.held.append(task_id)
        await actions.record(
            type="gate",
            label=f"needs_approval: {task.kind}",
            detail=task.title,
            amount_usd=task.estimated_cost,
            ok=False,
        )

    async def _record_tick_error(self, error: Exception) -> None:
        try:
            async with self._session_scope() as db:
                await ActionLog(db).record(
                    type="error",
                    label="tick_error",
                    detail=str(error) or type(error).__name__,
                    ok=False,
                )
        except Exception as e:
            logger.warning(f"Could not record tick error: {e}")


# Singleton (initialized on startup)
scheduler_loop: SchedulerLoop | None = None


def init_scheduler(
    session_scope: SessionScope, reasoning: ReasoningClient, settings: Settings,
    **kwargs,
) -> SchedulerLoop:
    global scheduler_loop
    scheduler_loop = SchedulerLoop(session_scope, reasoning, settings, **kwargs)
    return scheduler_loop


def get_scheduler() -> SchedulerLoop:
    """FastAPI dependency for the scheduler loop."""
    if not scheduler_loop:
        raise RuntimeError("Scheduler not initialized")
    return scheduler_loop
