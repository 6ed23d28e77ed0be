"""Application use cases: one entry point per engine operation."""

from agency.application.use_cases.sequences import (
    BulkAssignSequenceUseCase,
    CreateSequenceAssignmentUseCase,
    GetSequenceAssignmentsUseCase,
    RecordSequenceStepUseCase,
    SequenceLifecycleUseCase,
    UpdateSequenceAssignmentStatusUseCase,
)
from agency.application.use_cases.workflows import (
    AssignTeamUseCase,
    CreateWorkflowInstanceUseCase,
    GetTeamWorkloadUseCase,
    GetWorkflowTemplateUseCase,
    GetWorkflowUseCase,
    ListWorkflowTemplatesUseCase,
    UpdateTaskStatusUseCase,
    UpdateWorkflowStatusUseCase,
)

__all__ = [
    "AssignTeamUseCase",
    "BulkAssignSequenceUseCase",
    "CreateSequenceAssignmentUseCase",
    "CreateWorkflowInstanceUseCase",
    "GetSequenceAssignmentsUseCase",
    "GetTeamWorkloadUseCase",
    "GetWorkflowTemplateUseCase",
    "GetWorkflowUseCase",
    "ListWorkflowTemplatesUseCase",
    "RecordSequenceStepUseCase",
    "SequenceLifecycleUseCase",
    "UpdateSequenceAssignmentStatusUseCase",
    "UpdateTaskStatusUseCase",
    "UpdateWorkflowStatusUseCase",
]
