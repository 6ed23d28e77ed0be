"""Workflow use cases: templates, instances, team assignment, status updates."""

from agency.application.use_cases.workflows.assign_team import AssignTeamUseCase
from agency.application.use_cases.workflows.create_instance import CreateWorkflowInstanceUseCase
from agency.application.use_cases.workflows.queries import (
    GetTeamWorkloadUseCase,
    GetWorkflowUseCase,
)
from agency.application.use_cases.workflows.templates import (
    GetWorkflowTemplateUseCase,
    ListWorkflowTemplatesUseCase,
)
from agency.application.use_cases.workflows.update_task_status import UpdateTaskStatusUseCase
from agency.application.use_cases.workflows.update_workflow_status import (
    UpdateWorkflowStatusUseCase,
)

__all__ = [
    "AssignTeamUseCase",
    "CreateWorkflowInstanceUseCase",
    "GetTeamWorkloadUseCase",
    "GetWorkflowTemplateUseCase",
    "GetWorkflowUseCase",
    "ListWorkflowTemplatesUseCase",
    "UpdateTaskStatusUseCase",
    "UpdateWorkflowStatusUseCase",
]
