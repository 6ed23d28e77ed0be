"""Workflow API: thin routes delegating to the workflow use cases."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from agency.api.v1.dependencies import (
    get_actor,
    get_assign_team_use_case,
    get_create_instance_use_case,
    get_list_templates_use_case,
    get_template_use_case,
    get_update_task_use_case,
    get_update_workflow_use_case,
    get_workflow_query_use_case,
)
from agency.application.use_cases import (
    AssignTeamUseCase,
    CreateWorkflowInstanceUseCase,
    GetWorkflowTemplateUseCase,
    GetWorkflowUseCase,
    ListWorkflowTemplatesUseCase,
    UpdateTaskStatusUseCase,
    UpdateWorkflowStatusUseCase,
)
from agency.domain.enums import WorkflowStatus
from agency.domain.exceptions import NotFoundError
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
from agency.shared.context import ActorContext

router = APIRouter()

Actor = Annotated[ActorContext, Depends(get_actor)]


@router.post("/templates", response_model=WorkflowTemplateResponse)
async def get_or_create_template(
    body: TemplateRequest,
    use_case: Annotated[GetWorkflowTemplateUseCase, Depends(get_template_use_case)],
):
    """Return the template for a service type and tier, creating it on first use."""
    template = await use_case.execute(body.service_type, body.tier)
    return WorkflowTemplateResponse.model_validate(template)


@router.get("/templates", response_model=list[WorkflowTemplateResponse])
async def list_templates(
    use_case: Annotated[ListWorkflowTemplatesUseCase, Depends(get_list_templates_use_case)],
):
    """List stored templates ordered by name."""
    return [WorkflowTemplateResponse.model_validate(t) for t in await use_case.execute()]


@router.post("", response_model=WorkflowDetailResponse, status_code=201)
async def create_workflow(
    body: WorkflowCreateRequest,
    _actor: Actor,
    use_case: Annotated[CreateWorkflowInstanceUseCase, Depends(get_create_instance_use_case)],
):
    """Instantiate a template for a client; tasks start pending with no team."""
    detail = await use_case.execute(
        body.template_id,
        body.user_id,
        service_name=body.service_name,
        service_amount=body.service_amount,
        service_tier=body.service_tier,
        client_notes=body.client_notes,
    )
    return WorkflowDetailResponse.from_detail(detail)


@router.get("", response_model=list[WorkflowResponse])
async def list_workflows(
    use_case: Annotated[GetWorkflowUseCase, Depends(get_workflow_query_use_case)],
    user_id: str | None = Query(None),
    status: WorkflowStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List workflows, newest first."""
    workflows = await use_case.list_workflows(
        user_id=user_id, status=status, skip=skip, limit=limit
    )
    return [WorkflowResponse.model_validate(w) for w in workflows]


@router.get("/{workflow_id}", response_model=WorkflowDetailResponse)
async def get_workflow(
    workflow_id: str,
    use_case: Annotated[GetWorkflowUseCase, Depends(get_workflow_query_use_case)],
):
    """Get workflow with tasks, team and milestone progress."""
    return WorkflowDetailResponse.from_detail(await use_case.execute(workflow_id))


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: str,
    body: WorkflowUpdateRequest,
    _actor: Actor,
    use_case: Annotated[UpdateWorkflowStatusUseCase, Depends(get_update_workflow_use_case)],
):
    """Change workflow status and/or notes (partial)."""
    workflow = await use_case.execute(
        workflow_id,
        body.status,
        internal_notes=body.internal_notes,
        client_notes=body.client_notes,
        expected_completion_date=body.expected_completion_date,
    )
    return WorkflowResponse.model_validate(workflow)


@router.post("/{workflow_id}/assign-team", response_model=AssignmentPlanResponse)
async def assign_team(
    workflow_id: str,
    _actor: Actor,
    use_case: Annotated[AssignTeamUseCase, Depends(get_assign_team_use_case)],
):
    """Staff the workflow's pending tasks. 409 if a team was already assigned."""
    return AssignmentPlanResponse.from_plan(await use_case.execute(workflow_id))


@router.patch("/{workflow_id}/tasks/{task_id}", response_model=TaskUpdateResponse)
async def update_task(
    workflow_id: str,
    task_id: str,
    body: TaskUpdateRequest,
    _actor: Actor,
    use_case: Annotated[UpdateTaskStatusUseCase, Depends(get_update_task_use_case)],
    query: Annotated[GetWorkflowUseCase, Depends(get_workflow_query_use_case)],
):
    """Update a task's status and/or work fields."""
    detail = await query.execute(workflow_id)
    if all(t.id != task_id for t in detail.tasks):
        raise NotFoundError("task", task_id)
    result = await use_case.execute(
        task_id,
        body.status,
        blocked_reason=body.blocked_reason,
        actual_hours=body.actual_hours,
        completed_work=body.completed_work,
        assigned_to_id=body.assigned_to_id,
    )
    return TaskUpdateResponse.from_result(result)
