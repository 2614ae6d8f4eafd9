"""Task State Machine — tests for lifecycle edges and the initial-status rule.

Tests cover:
    - initial_status: above threshold -> needs_approval, at/below -> pending
    - terminal statuses have no outgoing edges
    - needs_approval only leads to approved
    - check_transition rejects edges outside the table
"""

import pytest

from axle.core.domain_types import TaskStatus
from axle.core.errors import InvalidTransitionError
from axle.core.task_state import (
    TERMINAL_STATUSES,
    can_transition,
    check_transition,
    initial_status,
    is_terminal,
    requires_approval,
)


# ─── initial_status ──────────────────────────────────────────────

@pytest.mark.parametrize("cost", [0.0, 5.0, 24.99, 25.0])
def test_cost_at_or_below_threshold_is_pending_and_auto_approved(cost):
    status, auto_approved = initial_status(cost, 25.0)
    assert status == TaskStatus.PENDING
    assert auto_approved is True


@pytest.mark.parametrize("cost", [25.01, 40.0, 1000.0])
def test_cost_above_threshold_needs_approval(cost):
    status, auto_approved = initial_status(cost, 25.0)
    assert status == TaskStatus.NEEDS_APPROVAL
    assert auto_approved is False


def test_zero_threshold_gates_any_positive_cost():
    assert requires_approval(0.01, 0.0)
    assert not requires_approval(0.0, 0.0)


# ─── transitions ─────────────────────────────────────────────────

def test_terminal_statuses_are_completed_and_failed():
    assert TERMINAL_STATUSES == {TaskStatus.COMPLETED, TaskStatus.FAILED}
    assert is_terminal(TaskStatus.COMPLETED)
    assert is_terminal("failed")
    assert not is_terminal(TaskStatus.RUNNING)


@pytest.mark.parametrize("target", list(TaskStatus))
def test_terminal_statuses_never_regress(target):
    assert not can_transition(TaskStatus.COMPLETED, target)
    assert not can_transition(TaskStatus.FAILED, target)


def test_needs_approval_only_leads_to_approved():
    allowed = [s for s in TaskStatus if can_transition(TaskStatus.NEEDS_APPROVAL, s)]
    assert allowed == [TaskStatus.APPROVED]


def test_pending_can_run_or_be_held():
    assert can_transition(TaskStatus.PENDING, TaskStatus.RUNNING)
    assert can_transition(TaskStatus.PENDING, TaskStatus.NEEDS_APPROVAL)
    assert not can_transition(TaskStatus.PENDING, TaskStatus.COMPLETED)


def test_check_transition_accepts_claim_from_pending_or_approved():
    check_transition([TaskStatus.PENDING, TaskStatus.APPROVED], TaskStatus.RUNNING)


def test_check_transition_rejects_self_approval_from_pending():
    with pytest.raises(InvalidTransitionError) as exc:
        check_transition([TaskStatus.PENDING], TaskStatus.APPROVED)
    assert exc.value.source == "pending"
    assert exc.value.target == "approved"
