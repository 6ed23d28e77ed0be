"""Sequence API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agency.application.services.sequence_lifecycle import DeactivateAction
from agency.domain.entities import SequenceStep
from agency.domain.enums import DelayUnit, SequenceAssignmentStatus, SequenceStatus, StepType


class SequenceStepRequest(BaseModel):
    """One step of a new sequence. The delay is measured from the previous step."""

    order: int = Field(..., ge=0)
    step_type: StepType
    title: str = Field(..., max_length=255)
    content: str | None = None
    subject: str | None = Field(default=None, max_length=255)
    delay_amount: int = Field(default=0, ge=0)
    delay_unit: DelayUnit = DelayUnit.HOURS
    active: bool = True

    def to_entity(self) -> SequenceStep:
        return SequenceStep(**self.model_dump())


class SequenceCreateRequest(BaseModel):
    """Request body for creating a draft sequence."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    sequence_type: str = Field(default="email", max_length=32)
    target_audience: str = Field(default="new_lead", max_length=32)
    steps: list[SequenceStepRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_orders(self) -> "SequenceCreateRequest":
        orders = [s.order for s in self.steps]
        if len(orders) != len(set(orders)):
            raise ValueError("Step orders must be unique")
        return self


class SequenceRejectRequest(BaseModel):
    feedback: str = Field(..., min_length=1)


class SequenceDeactivateRequest(BaseModel):
    action: DeactivateAction = DeactivateAction.PAUSE


class SequenceStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None
    order: int
    step_type: StepType
    title: str
    content: str | None
    subject: str | None
    delay_amount: int
    delay_unit: DelayUnit
    active: bool


class SequenceResponse(BaseModel):
    """Sequence with steps and approval metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: SequenceStatus
    description: str | None
    sequence_type: str
    target_audience: str
    steps: list[SequenceStepResponse]
    approved_by_id: str | None
    approved_at: datetime | None
    activated_at: datetime | None
    deactivated_at: datetime | None
    times_used: int
    created_by: str | None
    created_at: datetime | None
    updated_at: datetime | None


class SequenceAssignmentCreateRequest(BaseModel):
    """Assign a sequence to one lead (lead_id) or many (lead_ids)."""

    sequence_id: str = Field(..., min_length=1)
    lead_id: str | None = None
    lead_ids: list[str] | None = Field(default=None, min_length=1)
    auto_start: bool = False
    notes: str | None = None

    @model_validator(mode="after")
    def one_target(self) -> "SequenceAssignmentCreateRequest":
        if (self.lead_id is None) == (self.lead_ids is None):
            raise ValueError("Provide exactly one of lead_id or lead_ids")
        return self


class SequenceAssignmentUpdateRequest(BaseModel):
    """Request body for an assignment status change and/or notes edit."""

    status: SequenceAssignmentStatus | None = None
    notes: str | None = None


class StepRecordRequest(BaseModel):
    """Outcome of executing the assignment's current step."""

    success: bool = True
    details: dict[str, Any] | None = None
    error: str | None = None


class SequenceAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sequence_id: str
    lead_id: str
    status: SequenceAssignmentStatus
    current_step: int
    steps_completed: int
    emails_sent: int
    tasks_created: int
    assigned_by_id: str | None
    notes: str | None
    started_at: datetime | None
    paused_at: datetime | None
    completed_at: datetime | None
    version: int
    created_at: datetime | None
    updated_at: datetime | None


class SequenceActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    assignment_id: str
    step_order: int
    action_type: str
    result: dict[str, Any]
    error: str | None
    timestamp: datetime | None


class SequenceAssignmentDetailResponse(BaseModel):
    """Assignment with its activity log and when its current step is due."""

    assignment: SequenceAssignmentResponse
    activities: list[SequenceActivityResponse]
    next_step_due_at: datetime | None


class SkippedLeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lead_id: str
    reason: str


class BulkAssignResponse(BaseModel):
    """Outcome of assigning one sequence to many leads."""

    model_config = ConfigDict(from_attributes=True)

    sequence_id: str
    created: list[SequenceAssignmentResponse]
    skipped: list[SkippedLeadResponse]


class StepRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    assignment: SequenceAssignmentResponse
    activity: SequenceActivityResponse
