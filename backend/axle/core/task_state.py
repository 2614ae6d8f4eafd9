"""Task State Machine — legal lifecycle edges and the initial-status rule.

Invariants:
    - COMPLETED and FAILED are terminal (no outgoing edges)
    - NEEDS_APPROVAL -> APPROVED is the only way out of NEEDS_APPROVAL
    - initial_status is the single place creation decides pending vs needs_approval
    - All functions are PURE: no IO, no async
"""

from collections.abc import Iterable

from axle.core.domain_types import TaskStatus
from axle.core.errors import InvalidTransitionError


VALID_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.NEEDS_APPROVAL, TaskStatus.RUNNING}),
    TaskStatus.NEEDS_APPROVAL: frozenset({TaskStatus.APPROVED}),
    TaskStatus.APPROVED: frozenset({TaskStatus.RUNNING}),
    TaskStatus.RUNNING: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)


def is_terminal(status: TaskStatus) -> bool:
    return TaskStatus(status) in TERMINAL_STATUSES


def can_transition(source: TaskStatus, target: TaskStatus) -> bool:
    return TaskStatus(target) in VALID_TRANSITIONS[TaskStatus(source)]


def check_transition(
    sources: Iterable[TaskStatus], target: TaskStatus,
) -> None:
    """Raise InvalidTransitionError if any source cannot reach target."""
    for source in sources:
        if not can_transition(source, target):
            raise InvalidTransitionError(
                TaskStatus(source).value, TaskStatus(target).value,
            )


def requires_approval(estimated_cost: float, approval_threshold: float) -> bool:
    """Costs strictly above the threshold need a human sign-off."""
    return (estimated_cost or 0.0) > approval_threshold


def initial_status(
    estimated_cost: float, approval_threshold: float,
) -> tuple[TaskStatus, bool]:
    """Return (status, auto_approved) for a newly created task."""
    if requires_approval(estimated_cost, approval_threshold):
        return TaskStatus.NEEDS_APPROVAL, False
    return TaskStatus.PENDING, True
