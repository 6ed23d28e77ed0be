"""Use-case dependencies (composition root).

Builds engine services and use cases from the request's repositories.
Retry policy and template catalog settings come from Settings.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from agency.application.services import (
    CapacityLedger,
    ProgressTracker,
    RetryPolicy,
    TeamAssignmentPlanner,
)
from agency.application.use_cases import (
    AssignTeamUseCase,
    BulkAssignSequenceUseCase,
    CreateSequenceAssignmentUseCase,
    CreateWorkflowInstanceUseCase,
    GetSequenceAssignmentsUseCase,
    GetTeamWorkloadUseCase,
    GetWorkflowTemplateUseCase,
    GetWorkflowUseCase,
    ListWorkflowTemplatesUseCase,
    RecordSequenceStepUseCase,
    SequenceLifecycleUseCase,
    UpdateSequenceAssignmentStatusUseCase,
    UpdateTaskStatusUseCase,
    UpdateWorkflowStatusUseCase,
)
from agency.core.config import get_settings
from agency.infrastructure.templates import TemplateCatalog

from .repositories import Repositories, get_repositories

Repos = Annotated[Repositories, Depends(get_repositories)]


def get_retry_policy() -> RetryPolicy:
    settings = get_settings()
    return RetryPolicy(
        attempts=settings.store_retry_attempts,
        backoff_seconds=settings.store_retry_backoff_seconds,
    )


def get_template_catalog() -> TemplateCatalog:
    return TemplateCatalog(default_tier=get_settings().default_service_tier)


Policy = Annotated[RetryPolicy, Depends(get_retry_policy)]


async def get_template_use_case(
    repos: Repos,
    catalog: Annotated[TemplateCatalog, Depends(get_template_catalog)],
) -> GetWorkflowTemplateUseCase:
    return GetWorkflowTemplateUseCase(repos.templates, catalog)


async def get_list_templates_use_case(repos: Repos) -> ListWorkflowTemplatesUseCase:
    return ListWorkflowTemplatesUseCase(repos.templates)


async def get_create_instance_use_case(repos: Repos) -> CreateWorkflowInstanceUseCase:
    return CreateWorkflowInstanceUseCase(repos.templates, repos.workflows)


async def get_workflow_query_use_case(repos: Repos) -> GetWorkflowUseCase:
    return GetWorkflowUseCase(repos.workflows, repos.templates)


async def get_assign_team_use_case(repos: Repos, policy: Policy) -> AssignTeamUseCase:
    ledger = CapacityLedger(repos.employees, repos.workflows)
    planner = TeamAssignmentPlanner(repos.employees, repos.workflows, ledger, policy)
    return AssignTeamUseCase(planner)


async def get_update_task_use_case(repos: Repos, policy: Policy) -> UpdateTaskStatusUseCase:
    return UpdateTaskStatusUseCase(
        repos.workflows,
        repos.employees,
        CapacityLedger(repos.employees, repos.workflows),
        ProgressTracker(repos.workflows, policy),
    )


async def get_update_workflow_use_case(
    repos: Repos, policy: Policy
) -> UpdateWorkflowStatusUseCase:
    return UpdateWorkflowStatusUseCase(
        repos.workflows, CapacityLedger(repos.employees, repos.workflows), policy
    )


async def get_team_workload_use_case(repos: Repos) -> GetTeamWorkloadUseCase:
    return GetTeamWorkloadUseCase(repos.employees, repos.workflows)


async def get_sequence_lifecycle_use_case(repos: Repos) -> SequenceLifecycleUseCase:
    return SequenceLifecycleUseCase(repos.sequences, repos.employees)


async def get_create_assignment_use_case(repos: Repos) -> CreateSequenceAssignmentUseCase:
    return CreateSequenceAssignmentUseCase(repos.sequences, repos.leads)


async def get_bulk_assign_use_case(repos: Repos) -> BulkAssignSequenceUseCase:
    creator = CreateSequenceAssignmentUseCase(repos.sequences, repos.leads)
    return BulkAssignSequenceUseCase(repos.sequences, repos.leads, creator)


async def get_update_assignment_use_case(
    repos: Repos, policy: Policy
) -> UpdateSequenceAssignmentStatusUseCase:
    return UpdateSequenceAssignmentStatusUseCase(repos.sequences, policy)


async def get_assignment_query_use_case(repos: Repos) -> GetSequenceAssignmentsUseCase:
    return GetSequenceAssignmentsUseCase(repos.sequences)


async def get_record_step_use_case(repos: Repos, policy: Policy) -> RecordSequenceStepUseCase:
    return RecordSequenceStepUseCase(repos.sequences, policy)
