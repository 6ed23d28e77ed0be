"""Workflow and task state machine tests (pure functions, no store)."""

from datetime import UTC, datetime

import pytest

from agency.application.services.workflow_state_machine import (
    apply_task_transition,
    apply_workflow_transition,
    check_task_transition,
    check_workflow_transition,
    compute_progress,
    derive_automatic_transition,
    unmet_dependencies,
)
from agency.domain.entities import WorkflowInstanceEntity, WorkflowTaskEntity
from agency.domain.enums import TaskStatus, WorkflowStatus
from agency.domain.exceptions import (
    DependencyNotSatisfiedError,
    InvalidTransitionError,
    ValidationException,
)

NOW = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


def _task(order: int, status: TaskStatus = TaskStatus.PENDING, deps=(), **fields) -> WorkflowTaskEntity:
    return WorkflowTaskEntity(
        id=f"t{order}",
        workflow_id="wf",
        title=f"Task {order}",
        order=order,
        estimated_hours=2,
        dependencies=frozenset(deps),
        status=status,
        **fields,
    )


def _workflow(status: WorkflowStatus = WorkflowStatus.PENDING) -> WorkflowInstanceEntity:
    return WorkflowInstanceEntity(
        id="wf", user_id="client-1", template_id=None, service_name="SEO", service_tier="growth",
        status=status,
    )


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (3, 3, 100)],
)
def test_compute_progress_rounds_half_up(completed, total, expected) -> None:
    tasks = [
        _task(i, TaskStatus.COMPLETED if i < completed else TaskStatus.PENDING)
        for i in range(total)
    ]
    assert compute_progress(tasks) == expected


def test_unmet_dependencies_counts_missing_orders() -> None:
    task = _task(3, deps={1, 2, 9})
    siblings = [_task(1, TaskStatus.COMPLETED), _task(2, TaskStatus.IN_PROGRESS), task]
    assert unmet_dependencies(task, siblings) == [2, 9]


def test_cannot_start_before_dependencies_complete() -> None:
    first = _task(1, TaskStatus.IN_PROGRESS)
    second = _task(2, TaskStatus.ASSIGNED, deps={1}, assigned_to_id="e1")

    with pytest.raises(DependencyNotSatisfiedError) as exc:
        check_task_transition(second, TaskStatus.IN_PROGRESS, [first, second])
    assert exc.value.details["pending_dependencies"] == [1]

    first.status = TaskStatus.COMPLETED
    check_task_transition(second, TaskStatus.IN_PROGRESS, [first, second])


def test_invalid_task_edges_are_refused() -> None:
    with pytest.raises(InvalidTransitionError):
        check_task_transition(_task(1, TaskStatus.COMPLETED), TaskStatus.IN_PROGRESS, [])
    with pytest.raises(InvalidTransitionError):
        check_task_transition(_task(1, TaskStatus.ASSIGNED), TaskStatus.COMPLETED, [])


def test_blocking_requires_reason() -> None:
    task = _task(1, TaskStatus.IN_PROGRESS)
    with pytest.raises(ValidationException):
        check_task_transition(task, TaskStatus.BLOCKED, [task], blocked_reason="  ")
    check_task_transition(task, TaskStatus.BLOCKED, [task], blocked_reason="waiting on client")


def test_assigning_requires_assignee() -> None:
    task = _task(1)
    with pytest.raises(ValidationException):
        check_task_transition(task, TaskStatus.ASSIGNED, [task])
    check_task_transition(task, TaskStatus.ASSIGNED, [task], assignee_id="e1")


def test_apply_task_transition_stamps_timestamps() -> None:
    task = _task(1, TaskStatus.ASSIGNED)
    apply_task_transition(task, TaskStatus.IN_PROGRESS, NOW)
    assert task.started_at == NOW

    apply_task_transition(task, TaskStatus.BLOCKED, NOW, blocked_reason="assets")
    assert task.blocked_reason == "assets"

    apply_task_transition(task, TaskStatus.COMPLETED, NOW)
    assert task.completed_at == NOW
    assert task.blocked_reason is None


def test_workflow_completion_requires_all_tasks_completed() -> None:
    workflow = _workflow(WorkflowStatus.IN_PROGRESS)
    tasks = [_task(1, TaskStatus.COMPLETED), _task(2, TaskStatus.IN_PROGRESS)]

    with pytest.raises(InvalidTransitionError) as exc:
        check_workflow_transition(workflow, WorkflowStatus.COMPLETED, tasks)
    assert exc.value.details["reason"] == "tasks not completed: [2]"


def test_terminal_workflow_cannot_move() -> None:
    with pytest.raises(InvalidTransitionError):
        check_workflow_transition(_workflow(WorkflowStatus.CANCELLED), WorkflowStatus.PENDING, [])


def test_on_hold_can_resume() -> None:
    workflow = _workflow(WorkflowStatus.ON_HOLD)
    check_workflow_transition(workflow, WorkflowStatus.IN_PROGRESS, [])
    apply_workflow_transition(workflow, WorkflowStatus.IN_PROGRESS, NOW)
    assert workflow.started_at == NOW


def test_apply_completed_sets_full_progress() -> None:
    workflow = _workflow(WorkflowStatus.IN_PROGRESS)
    apply_workflow_transition(workflow, WorkflowStatus.COMPLETED, NOW)
    assert workflow.progress == 100
    assert workflow.completed_at == NOW


def test_derive_automatic_transition() -> None:
    pending = _workflow()
    assert derive_automatic_transition(pending, [_task(1, TaskStatus.ASSIGNED)]) is None
    assert (
        derive_automatic_transition(pending, [_task(1, TaskStatus.IN_PROGRESS), _task(2)])
        == WorkflowStatus.IN_PROGRESS
    )
    running = _workflow(WorkflowStatus.IN_PROGRESS)
    assert (
        derive_automatic_transition(running, [_task(1, TaskStatus.COMPLETED)])
        == WorkflowStatus.COMPLETED
    )
    on_hold = _workflow(WorkflowStatus.ON_HOLD)
    assert derive_automatic_transition(on_hold, [_task(1, TaskStatus.COMPLETED)]) is None
    assert derive_automatic_transition(pending, []) is None
