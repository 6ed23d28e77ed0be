"""DTOs for workflow use cases (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field

from agency.domain.entities import (
    Milestone,
    TeamAssignmentEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
)
from agency.domain.exceptions import CapacityExceededError


@dataclass(frozen=True)
class TaskAssignment:
    """One planner decision: task bound to employee."""

    task_id: str
    employee_id: str
    score: float
    overcommitted: bool = False


@dataclass(frozen=True)
class UnassignedTask:
    """A task the planner could not staff, with the reason."""

    task_id: str
    order: int
    reason: str


@dataclass
class AssignmentPlan:
    """Outcome of a team assignment run.

    mapping holds task id -> employee id for every task that has an assignee
    after the run (including tasks that were already assigned before it).
    """

    workflow_id: str
    mapping: dict[str, str] = field(default_factory=dict)
    assignments: list[TaskAssignment] = field(default_factory=list)
    unassigned: list[UnassignedTask] = field(default_factory=list)
    warnings: list[CapacityExceededError] = field(default_factory=list)
    team: list[TeamAssignmentEntity] = field(default_factory=list)


@dataclass(frozen=True)
class TaskUpdateResult:
    """Task after a status update plus the workflow it belongs to."""

    task: WorkflowTaskEntity
    workflow: WorkflowInstanceEntity
    workflow_status_changed: bool = False


@dataclass(frozen=True)
class WorkflowDetail:
    """Workflow with its tasks, team and milestone progress."""

    workflow: WorkflowInstanceEntity
    tasks: list[WorkflowTaskEntity]
    team: list[TeamAssignmentEntity]
    milestones: list[Milestone] = field(default_factory=list)
    milestones_reached: list[str] = field(default_factory=list)
