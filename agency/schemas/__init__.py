"""Pydantic request/response schemas for the API."""

from agency.schemas.health import HealthResponse
from agency.schemas.sequence import (
    BulkAssignResponse,
    SequenceAssignmentCreateRequest,
    SequenceAssignmentDetailResponse,
    SequenceAssignmentResponse,
    SequenceAssignmentUpdateRequest,
    SequenceCreateRequest,
    SequenceResponse,
    StepRecordRequest,
    StepRecordResponse,
)
from agency.schemas.team import EmployeeWorkloadResponse
from agency.schemas.workflow import (
    AssignmentPlanResponse,
    TaskUpdateRequest,
    TaskUpdateResponse,
    TemplateRequest,
    WorkflowCreateRequest,
    WorkflowDetailResponse,
    WorkflowResponse,
    WorkflowTemplateResponse,
    WorkflowUpdateRequest,
)

__all__ = [
    "AssignmentPlanResponse",
    "BulkAssignResponse",
    "EmployeeWorkloadResponse",
    "HealthResponse",
    "SequenceAssignmentCreateRequest",
    "SequenceAssignmentDetailResponse",
    "SequenceAssignmentResponse",
    "SequenceAssignmentUpdateRequest",
    "SequenceCreateRequest",
    "SequenceResponse",
    "StepRecordRequest",
    "StepRecordResponse",
    "TaskUpdateRequest",
    "TaskUpdateResponse",
    "TemplateRequest",
    "WorkflowCreateRequest",
    "WorkflowDetailResponse",
    "WorkflowResponse",
    "WorkflowTemplateResponse",
    "WorkflowUpdateRequest",
]
