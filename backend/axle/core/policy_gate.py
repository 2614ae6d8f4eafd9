"""Policy Gate — decides at tick time whether a task may run unattended.

Invariants:
    - PURE: depends only on the task's status/cost and the threshold passed in
    - APPROVED tasks always pass (explicit human override)
    - Any other task passes iff estimated_cost <= threshold, whatever its stored
      status says — the threshold may have changed since creation
"""

from typing import Protocol

from axle.core.domain_types import TaskStatus
from axle.core.task_state import requires_approval


class GatedTask(Protocol):
    """Structural contract for anything the gate can judge."""
    status: str
    estimated_cost: float


def may_run(task: GatedTask, approval_threshold: float) -> bool:
    if task.status == TaskStatus.APPROVED:
        return True
    return not requires_approval(task.estimated_cost, approval_threshold)
