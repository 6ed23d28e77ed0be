"""Workflow domain entities.

A WorkflowTemplate is an immutable blueprint (ordered task blueprints plus
milestones) for one service type and tier. A WorkflowInstance is one running
engagement cloned from a template; its WorkflowTasks reference sibling tasks
by order in their dependency sets. TeamAssignment links an employee to a
workflow they hold tasks on.
"""

from dataclasses import dataclass, field
from datetime import datetime

from agency.domain.enums import TaskStatus, TeamAssignmentStatus, TeamRole, WorkflowStatus
from agency.domain.exceptions import ValidationException


@dataclass(frozen=True)
class TaskBlueprint:
    """One task of a template. Dependencies are orders of sibling blueprints."""

    title: str
    order: int
    estimated_hours: float
    description: str = ""
    required_skills: frozenset[str] = frozenset()
    dependencies: frozenset[int] = frozenset()
    visible_to_client: bool = False


@dataclass(frozen=True)
class Milestone:
    """Named checkpoint reached when all listed task orders are completed."""

    name: str
    order: int
    task_orders: tuple[int, ...]


@dataclass(frozen=True)
class WorkflowTemplateEntity:
    """Immutable workflow blueprint for a (service_type, service_tier) pair.

    Validation runs on construction: blueprint orders are unique, every
    dependency names an existing blueprint, and the dependency graph is acyclic.
    """

    id: str
    name: str
    service_type: str
    service_tier: str
    estimated_duration: int
    estimated_hours: float
    tasks: tuple[TaskBlueprint, ...]
    milestones: tuple[Milestone, ...] = ()
    display_name: str | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate template structure. Raises ValidationException if invalid."""
        if not self.name:
            raise ValidationException("Template name is required", field="name")
        if self.estimated_duration < 0:
            raise ValidationException(
                "Estimated duration cannot be negative", field="estimated_duration"
            )
        orders = [bp.order for bp in self.tasks]
        if len(orders) != len(set(orders)):
            raise ValidationException("Task blueprint orders must be unique", field="tasks")
        known = set(orders)
        for bp in self.tasks:
            if bp.estimated_hours < 0:
                raise ValidationException(
                    f"Task {bp.order} has negative estimated hours", field="tasks"
                )
            missing = bp.dependencies - known
            if missing:
                raise ValidationException(
                    f"Task {bp.order} depends on unknown tasks {sorted(missing)}",
                    field="tasks",
                )
        if self._has_cycle():
            raise ValidationException("Task dependencies contain a cycle", field="tasks")

    def _has_cycle(self) -> bool:
        deps = {bp.order: bp.dependencies for bp in self.tasks}
        visiting: set[int] = set()
        done: set[int] = set()

        def visit(order: int) -> bool:
            if order in done:
                return False
            if order in visiting:
                return True
            visiting.add(order)
            if any(visit(d) for d in deps[order]):
                return True
            visiting.discard(order)
            done.add(order)
            return False

        return any(visit(o) for o in sorted(deps))


@dataclass
class WorkflowInstanceEntity:
    """One running service engagement.

    progress is derived from task statuses by the progress tracker and is
    never set directly. version backs optimistic compare-and-swap writes.
    """

    id: str
    user_id: str
    template_id: str | None
    service_name: str
    service_tier: str
    service_amount: float = 0.0
    status: WorkflowStatus = WorkflowStatus.PENDING
    progress: int = 0
    team_assigned: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None
    expected_completion_date: datetime | None = None
    internal_notes: str | None = None
    client_notes: str | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValidationException("Workflow must have an owner", field="user_id")
        if not 0 <= self.progress <= 100:
            raise ValidationException("Progress must be between 0 and 100", field="progress")

    def accepts_task_changes(self) -> bool:
        """Return whether task mutations are allowed in the current status."""
        return self.status in (WorkflowStatus.PENDING, WorkflowStatus.IN_PROGRESS)


@dataclass
class WorkflowTaskEntity:
    """A single unit of work inside a workflow instance."""

    id: str
    workflow_id: str
    title: str
    order: int
    estimated_hours: float
    description: str = ""
    actual_hours: float | None = None
    required_skills: frozenset[str] = field(default_factory=frozenset)
    dependencies: frozenset[int] = field(default_factory=frozenset)
    status: TaskStatus = TaskStatus.PENDING
    assigned_to_id: str | None = None
    blocked_reason: str | None = None
    completed_work: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    visible_to_client: bool = False

    def __post_init__(self) -> None:
        self.required_skills = frozenset(self.required_skills)
        self.dependencies = frozenset(self.dependencies)
        if self.estimated_hours < 0:
            raise ValidationException(
                "Estimated hours cannot be negative", field="estimated_hours"
            )

    @property
    def holds_capacity(self) -> bool:
        """True when an assignee has hours reserved for this task."""
        return self.assigned_to_id is not None and self.status in TaskStatus.open_statuses()


@dataclass
class TeamAssignmentEntity:
    """Records that an employee holds work on a workflow."""

    id: str
    workflow_id: str
    employee_id: str
    status: TeamAssignmentStatus = TeamAssignmentStatus.ACTIVE
    role: TeamRole = TeamRole.CONTRIBUTOR
    allocated_hours: float = 0.0
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
