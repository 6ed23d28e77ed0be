"""Workflow API schemas."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agency.application.dtos import AssignmentPlan, TaskUpdateResult, WorkflowDetail
from agency.domain.enums import TaskStatus, TeamAssignmentStatus, TeamRole, WorkflowStatus


def _sorted(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


class TemplateRequest(BaseModel):
    """Request body for resolving (and lazily creating) a workflow template."""

    service_type: str = Field(..., min_length=1, max_length=64)
    tier: str | None = Field(default=None, min_length=1, max_length=32)


class TaskBlueprintResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    order: int
    estimated_hours: float
    description: str
    required_skills: list[str]
    dependencies: list[int]
    visible_to_client: bool

    @field_validator("required_skills", "dependencies", mode="before")
    @classmethod
    def sort_sets(cls, value: Any) -> Any:
        return _sorted(value)


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    order: int
    task_orders: list[int]


class WorkflowTemplateResponse(BaseModel):
    """Workflow template with task blueprints and milestones."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    display_name: str | None
    service_type: str
    service_tier: str
    estimated_duration: int
    estimated_hours: float
    tasks: list[TaskBlueprintResponse]
    milestones: list[MilestoneResponse]


class WorkflowCreateRequest(BaseModel):
    """Request body for instantiating a template for a client."""

    template_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Owning client user")
    service_name: str = Field(..., min_length=1, max_length=255)
    service_amount: float = Field(default=0.0, ge=0)
    service_tier: str | None = Field(default=None, max_length=32)
    client_notes: str | None = None


class WorkflowUpdateRequest(BaseModel):
    """Request body for a workflow status change and/or note edits (partial)."""

    model_config = ConfigDict(extra="forbid")

    status: WorkflowStatus | None = None
    internal_notes: str | None = None
    client_notes: str | None = None
    expected_completion_date: datetime | None = None


class TaskUpdateRequest(BaseModel):
    """Request body for a task update (partial)."""

    model_config = ConfigDict(extra="forbid")

    status: TaskStatus | None = None
    blocked_reason: str | None = Field(default=None, max_length=1000)
    actual_hours: float | None = Field(default=None, ge=0)
    completed_work: str | None = None
    assigned_to_id: str | None = None


class WorkflowResponse(BaseModel):
    """Workflow instance response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    template_id: str | None
    service_name: str
    service_tier: str
    service_amount: float
    status: WorkflowStatus
    progress: int
    team_assigned: bool
    started_at: datetime | None
    completed_at: datetime | None
    expected_completion_date: datetime | None
    internal_notes: str | None
    client_notes: str | None
    version: int
    created_at: datetime | None
    updated_at: datetime | None


class TaskResponse(BaseModel):
    """Workflow task response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    title: str
    description: str
    order: int
    estimated_hours: float
    actual_hours: float | None
    required_skills: list[str]
    dependencies: list[int]
    status: TaskStatus
    assigned_to_id: str | None
    blocked_reason: str | None
    completed_work: str | None
    started_at: datetime | None
    completed_at: datetime | None
    visible_to_client: bool

    @field_validator("required_skills", "dependencies", mode="before")
    @classmethod
    def sort_sets(cls, value: Any) -> Any:
        return _sorted(value)


class TeamMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    employee_id: str
    status: TeamAssignmentStatus
    role: TeamRole
    allocated_hours: float
    assigned_at: datetime | None
    completed_at: datetime | None


class WorkflowDetailResponse(BaseModel):
    """Workflow with tasks, team and milestone progress."""

    workflow: WorkflowResponse
    tasks: list[TaskResponse]
    team: list[TeamMemberResponse]
    milestones: list[MilestoneResponse]
    milestones_reached: list[str]

    @classmethod
    def from_detail(cls, detail: WorkflowDetail) -> "WorkflowDetailResponse":
        return cls(
            workflow=WorkflowResponse.model_validate(detail.workflow),
            tasks=_many(TaskResponse, detail.tasks),
            team=_many(TeamMemberResponse, detail.team),
            milestones=_many(MilestoneResponse, detail.milestones),
            milestones_reached=list(detail.milestones_reached),
        )


class TaskAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    employee_id: str
    score: float
    overcommitted: bool


class UnassignedTaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: str
    order: int
    reason: str


class AssignmentPlanResponse(BaseModel):
    """Outcome of a team assignment run."""

    workflow_id: str
    mapping: dict[str, str]
    assignments: list[TaskAssignmentResponse]
    unassigned: list[UnassignedTaskResponse]
    warnings: list[dict[str, Any]]
    team: list[TeamMemberResponse]

    @classmethod
    def from_plan(cls, plan: AssignmentPlan) -> "AssignmentPlanResponse":
        return cls(
            workflow_id=plan.workflow_id,
            mapping=dict(plan.mapping),
            assignments=_many(TaskAssignmentResponse, plan.assignments),
            unassigned=_many(UnassignedTaskResponse, plan.unassigned),
            warnings=[w.to_dict() for w in plan.warnings],
            team=_many(TeamMemberResponse, plan.team),
        )


class TaskUpdateResponse(BaseModel):
    """Task after an update plus its workflow's resulting state."""

    task: TaskResponse
    workflow: WorkflowResponse
    workflow_status_changed: bool

    @classmethod
    def from_result(cls, result: TaskUpdateResult) -> "TaskUpdateResponse":
        return cls(
            task=TaskResponse.model_validate(result.task),
            workflow=WorkflowResponse.model_validate(result.workflow),
            workflow_status_changed=result.workflow_status_changed,
        )


def _many(model: type[BaseModel], items: Iterable[Any]) -> list[Any]:
    return [model.model_validate(item) for item in items]
