"""Workflow and task state machine.

Transition tables plus the functions that check and apply an edge. All
functions here are pure: they validate and mutate entities in memory and
leave persistence and capacity side effects to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from agency.domain.entities import WorkflowInstanceEntity, WorkflowTaskEntity
from agency.domain.enums import TaskStatus, WorkflowStatus
from agency.domain.exceptions import (
    DependencyNotSatisfiedError,
    InvalidTransitionError,
    ValidationException,
)

W = WorkflowStatus
T = TaskStatus

WORKFLOW_TRANSITIONS: dict[WorkflowStatus, frozenset[WorkflowStatus]] = {
    W.PENDING: frozenset({W.IN_PROGRESS, W.COMPLETED, W.ON_HOLD, W.CANCELLED}),
    W.IN_PROGRESS: frozenset({W.COMPLETED, W.ON_HOLD, W.CANCELLED}),
    W.ON_HOLD: frozenset({W.PENDING, W.IN_PROGRESS, W.COMPLETED, W.CANCELLED}),
    W.COMPLETED: frozenset(),
    W.CANCELLED: frozenset(),
}

TASK_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    T.PENDING: frozenset({T.ASSIGNED, T.IN_PROGRESS}),
    T.ASSIGNED: frozenset({T.IN_PROGRESS}),
    T.IN_PROGRESS: frozenset({T.BLOCKED, T.COMPLETED}),
    T.BLOCKED: frozenset({T.IN_PROGRESS, T.COMPLETED}),
    T.COMPLETED: frozenset(),
}

# Task statuses that mean work on the workflow has begun.
_STARTED_TASK_STATUSES = frozenset({T.IN_PROGRESS, T.BLOCKED, T.COMPLETED})


def compute_progress(tasks: Iterable[WorkflowTaskEntity]) -> int:
    """Percentage of completed tasks, rounded half up; 0 for an empty workflow."""
    statuses = [t.status for t in tasks]
    total = len(statuses)
    if total == 0:
        return 0
    completed = sum(1 for s in statuses if s == T.COMPLETED)
    return (200 * completed + total) // (2 * total)


def unmet_dependencies(
    task: WorkflowTaskEntity, siblings: Iterable[WorkflowTaskEntity]
) -> list[int]:
    """Orders of prerequisite tasks that are not completed.

    A dependency naming an order with no sibling task counts as unmet.
    """
    completed_orders = {s.order for s in siblings if s.status == T.COMPLETED}
    return sorted(d for d in task.dependencies if d not in completed_orders)


def check_task_transition(
    task: WorkflowTaskEntity,
    target: TaskStatus,
    siblings: Iterable[WorkflowTaskEntity],
    *,
    blocked_reason: str | None = None,
    assignee_id: str | None = None,
) -> None:
    """Raise if task may not move to target.

    Raises:
        InvalidTransitionError: Edge not allowed.
        ValidationException: Missing blocked_reason or assignee.
        DependencyNotSatisfiedError: Starting or completing with open prerequisites.
    """
    if target not in TASK_TRANSITIONS[task.status]:
        raise InvalidTransitionError("task", task.status.value, target.value)
    if target == T.BLOCKED and not (blocked_reason or "").strip():
        raise ValidationException("A blocked task requires blocked_reason", field="blocked_reason")
    if target == T.ASSIGNED and not (assignee_id or task.assigned_to_id):
        raise ValidationException("Assigning a task requires assigned_to_id", field="assigned_to_id")
    if target in (T.IN_PROGRESS, T.COMPLETED):
        pending = unmet_dependencies(task, siblings)
        if pending:
            raise DependencyNotSatisfiedError(task.id, pending)


def apply_task_transition(
    task: WorkflowTaskEntity,
    target: TaskStatus,
    now: datetime,
    *,
    blocked_reason: str | None = None,
) -> None:
    """Mutate task into target status and stamp its timestamps."""
    task.status = target
    if target == T.IN_PROGRESS:
        task.blocked_reason = None
        if task.started_at is None:
            task.started_at = now
    elif target == T.BLOCKED:
        task.blocked_reason = blocked_reason
    elif target == T.COMPLETED:
        task.blocked_reason = None
        task.completed_at = now
        if task.started_at is None:
            task.started_at = now


def check_workflow_transition(
    workflow: WorkflowInstanceEntity,
    target: WorkflowStatus,
    tasks: Iterable[WorkflowTaskEntity],
) -> None:
    """Raise InvalidTransitionError if workflow may not move to target."""
    if target not in WORKFLOW_TRANSITIONS[workflow.status]:
        raise InvalidTransitionError("workflow", workflow.status.value, target.value)
    if target == W.COMPLETED:
        open_orders = sorted(t.order for t in tasks if t.status != T.COMPLETED)
        if open_orders:
            raise InvalidTransitionError(
                "workflow",
                workflow.status.value,
                target.value,
                reason=f"tasks not completed: {open_orders}",
            )


def apply_workflow_transition(
    workflow: WorkflowInstanceEntity,
    target: WorkflowStatus,
    now: datetime,
) -> None:
    """Mutate workflow into target status and stamp its timestamps."""
    workflow.status = target
    if target == W.IN_PROGRESS and workflow.started_at is None:
        workflow.started_at = now
    elif target == W.COMPLETED:
        workflow.completed_at = now
        workflow.progress = 100
        if workflow.started_at is None:
            workflow.started_at = now


def derive_automatic_transition(
    workflow: WorkflowInstanceEntity, tasks: list[WorkflowTaskEntity]
) -> WorkflowStatus | None:
    """Return the status a task change implies for its workflow, if any.

    The first task to start moves a pending workflow to in_progress; the last
    task to complete moves an active workflow to completed.
    """
    if workflow.status not in (W.PENDING, W.IN_PROGRESS):
        return None
    if tasks and all(t.status == T.COMPLETED for t in tasks):
        return W.COMPLETED
    if workflow.status == W.PENDING and any(t.status in _STARTED_TASK_STATUSES for t in tasks):
        return W.IN_PROGRESS
    return None
