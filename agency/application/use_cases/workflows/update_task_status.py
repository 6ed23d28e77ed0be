"""Update task status use case.

Validates the edge, persists the task, moves reserved capacity when the
task's holder changes, then recomputes workflow progress (which may also
move the workflow to in_progress or completed).
"""

from __future__ import annotations

from agency.application.dtos.workflow import TaskUpdateResult
from agency.application.interfaces.repositories import IEmployeeRepository, IWorkflowRepository
from agency.application.services.capacity_ledger import CapacityLedger
from agency.application.services.progress_tracker import ProgressTracker
from agency.application.services.workflow_state_machine import (
    apply_task_transition,
    check_task_transition,
)
from agency.domain.entities import WorkflowTaskEntity
from agency.domain.enums import EmployeeStatus, TaskStatus, WorkflowStatus
from agency.domain.exceptions import InvalidTransitionError, NotFoundError, ValidationException
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced
from agency.shared.utils.datetime import utc_now

logger = get_logger(__name__)


def _reservation(task: WorkflowTaskEntity) -> tuple[str, float] | None:
    if task.holds_capacity and task.assigned_to_id:
        return task.assigned_to_id, task.estimated_hours
    return None


class UpdateTaskStatusUseCase:
    """Applies an employee's task update and keeps capacity and progress consistent."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        employee_repo: IEmployeeRepository,
        ledger: CapacityLedger,
        progress_tracker: ProgressTracker,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._employee_repo = employee_repo
        self._ledger = ledger
        self._progress_tracker = progress_tracker

    @traced("workflow.update_task_status")
    async def execute(
        self,
        task_id: str,
        new_status: TaskStatus | None = None,
        *,
        blocked_reason: str | None = None,
        actual_hours: float | None = None,
        completed_work: str | None = None,
        assigned_to_id: str | None = None,
    ) -> TaskUpdateResult:
        """Update a task.

        A new_status equal to the current status is treated as a field-only
        update.

        Raises:
            NotFoundError: Task, workflow or assignee does not exist.
            InvalidTransitionError: Edge not allowed, or workflow not accepting changes.
            DependencyNotSatisfiedError: Prerequisites not completed.
            ValidationException: Missing blocked_reason/assignee or bad field values.
            TransientStoreError: Progress recompute kept conflicting.
        """
        found = await self._workflow_repo.get_task(task_id)
        if found is None:
            raise NotFoundError("task", task_id)
        async with self._workflow_repo.lock_workflow(found.workflow_id):
            return await self._update_locked(
                task_id,
                new_status,
                blocked_reason=blocked_reason,
                actual_hours=actual_hours,
                completed_work=completed_work,
                assigned_to_id=assigned_to_id,
            )

    async def _update_locked(
        self,
        task_id: str,
        new_status: TaskStatus | None,
        *,
        blocked_reason: str | None,
        actual_hours: float | None,
        completed_work: str | None,
        assigned_to_id: str | None,
    ) -> TaskUpdateResult:
        # Re-read under the lock; a cancel may have landed since the first read.
        task = await self._workflow_repo.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        workflow = await self._workflow_repo.get_by_id(task.workflow_id)
        if workflow is None:
            raise NotFoundError("workflow", task.workflow_id)
        if not workflow.accepts_task_changes():
            raise InvalidTransitionError(
                "task",
                task.status.value,
                (new_status or task.status).value,
                reason=f"workflow is {workflow.status.value}",
            )
        if actual_hours is not None and actual_hours < 0:
            raise ValidationException("Actual hours cannot be negative", field="actual_hours")

        held_before = _reservation(task)
        if assigned_to_id is not None and assigned_to_id != task.assigned_to_id:
            if task.status == TaskStatus.COMPLETED:
                raise ValidationException("Completed tasks cannot be reassigned", field="assigned_to_id")
            employee = await self._employee_repo.get_by_id(assigned_to_id)
            if employee is None:
                raise NotFoundError("employee", assigned_to_id)
            if employee.status != EmployeeStatus.ACTIVE:
                raise ValidationException("Employee is not active", field="assigned_to_id")
            task.assigned_to_id = assigned_to_id

        previous_status = task.status
        if new_status is not None and new_status != task.status:
            siblings = await self._workflow_repo.get_tasks(task.workflow_id)
            check_task_transition(
                task,
                new_status,
                siblings,
                blocked_reason=blocked_reason,
                assignee_id=task.assigned_to_id,
            )
            apply_task_transition(task, new_status, utc_now(), blocked_reason=blocked_reason)
        elif blocked_reason is not None and task.status == TaskStatus.BLOCKED:
            task.blocked_reason = blocked_reason
        if actual_hours is not None:
            task.actual_hours = actual_hours
        if completed_work is not None:
            task.completed_work = completed_work
        task = await self._workflow_repo.update_task(task)
        if task.status != previous_status:
            logger.info(
                "Task %s: %s -> %s", task.id, previous_status.value, task.status.value
            )

        held_after = _reservation(task)
        if held_before != held_after:
            if held_before is not None:
                await self._ledger.release(held_before[0], task.workflow_id, held_before[1])
            if held_after is not None:
                await self._ledger.reserve(held_after[0], task.workflow_id, held_after[1])

        workflow, moved_to = await self._progress_tracker.recompute(task.workflow_id)
        if moved_to == WorkflowStatus.COMPLETED:
            await self._ledger.close_team(task.workflow_id)
        return TaskUpdateResult(task=task, workflow=workflow, workflow_status_changed=moved_to is not None)
