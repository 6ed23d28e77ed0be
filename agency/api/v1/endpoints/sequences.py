"""Sequence API: authoring lifecycle, lead assignments and step outcomes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from agency.api.v1.dependencies import (
    get_actor,
    get_assignment_query_use_case,
    get_bulk_assign_use_case,
    get_create_assignment_use_case,
    get_record_step_use_case,
    get_sequence_lifecycle_use_case,
    get_update_assignment_use_case,
)
from agency.application.use_cases import (
    BulkAssignSequenceUseCase,
    CreateSequenceAssignmentUseCase,
    GetSequenceAssignmentsUseCase,
    RecordSequenceStepUseCase,
    SequenceLifecycleUseCase,
    UpdateSequenceAssignmentStatusUseCase,
)
from agency.domain.enums import SequenceAssignmentStatus
from agency.schemas.sequence import (
    BulkAssignResponse,
    SequenceActivityResponse,
    SequenceAssignmentCreateRequest,
    SequenceAssignmentDetailResponse,
    SequenceAssignmentResponse,
    SequenceAssignmentUpdateRequest,
    SequenceCreateRequest,
    SequenceDeactivateRequest,
    SequenceRejectRequest,
    SequenceResponse,
    StepRecordRequest,
    StepRecordResponse,
)
from agency.shared.context import ActorContext

router = APIRouter()

Actor = Annotated[ActorContext, Depends(get_actor)]
Lifecycle = Annotated[SequenceLifecycleUseCase, Depends(get_sequence_lifecycle_use_case)]
AssignmentQuery = Annotated[GetSequenceAssignmentsUseCase, Depends(get_assignment_query_use_case)]


# Assignment routes are declared before /{sequence_id} so the literal path wins.
@router.post(
    "/assignments",
    response_model=SequenceAssignmentResponse | BulkAssignResponse,
    status_code=201,
)
async def create_assignment(
    body: SequenceAssignmentCreateRequest,
    actor: Actor,
    single: Annotated[CreateSequenceAssignmentUseCase, Depends(get_create_assignment_use_case)],
    bulk: Annotated[BulkAssignSequenceUseCase, Depends(get_bulk_assign_use_case)],
):
    """Assign an approved sequence to one lead (lead_id) or many (lead_ids).

    Bulk requests report duplicate and unknown leads in `skipped` instead of failing.
    """
    if body.lead_ids is not None:
        result = await bulk.execute(
            body.sequence_id,
            body.lead_ids,
            auto_start=body.auto_start,
            assigned_by_id=actor.user_id,
        )
        return BulkAssignResponse.model_validate(result)
    assignment = await single.execute(
        body.sequence_id,
        body.lead_id,
        auto_start=body.auto_start,
        notes=body.notes,
        assigned_by_id=actor.user_id,
    )
    return SequenceAssignmentResponse.model_validate(assignment)


@router.get("/assignments", response_model=list[SequenceAssignmentResponse])
async def list_assignments(
    use_case: AssignmentQuery,
    sequence_id: str | None = Query(None),
    lead_id: str | None = Query(None),
    status: SequenceAssignmentStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List assignments, newest first."""
    assignments = await use_case.list_assignments(
        sequence_id=sequence_id, lead_id=lead_id, status=status, skip=skip, limit=limit
    )
    return [SequenceAssignmentResponse.model_validate(a) for a in assignments]


@router.get("/assignments/{assignment_id}", response_model=SequenceAssignmentDetailResponse)
async def get_assignment(
    assignment_id: str,
    use_case: AssignmentQuery,
    steps: Annotated[RecordSequenceStepUseCase, Depends(get_record_step_use_case)],
):
    """Get an assignment with its activity log and when its current step is due."""
    assignment, activities = await use_case.execute(assignment_id)
    return SequenceAssignmentDetailResponse(
        assignment=SequenceAssignmentResponse.model_validate(assignment),
        activities=[SequenceActivityResponse.model_validate(a) for a in activities],
        next_step_due_at=await steps.next_due_at(assignment_id),
    )


@router.patch("/assignments/{assignment_id}", response_model=SequenceAssignmentResponse)
async def update_assignment(
    assignment_id: str,
    body: SequenceAssignmentUpdateRequest,
    _actor: Actor,
    use_case: Annotated[
        UpdateSequenceAssignmentStatusUseCase, Depends(get_update_assignment_use_case)
    ],
):
    """Start, pause, resume or complete an assignment; or edit its notes."""
    assignment = await use_case.execute(assignment_id, body.status, notes=body.notes)
    return SequenceAssignmentResponse.model_validate(assignment)


@router.post("/assignments/{assignment_id}/steps", response_model=StepRecordResponse)
async def record_step(
    assignment_id: str,
    body: StepRecordRequest,
    _actor: Actor,
    use_case: Annotated[RecordSequenceStepUseCase, Depends(get_record_step_use_case)],
):
    """Record the outcome of the assignment's current step."""
    result = await use_case.execute(
        assignment_id, success=body.success, details=body.details, error=body.error
    )
    return StepRecordResponse.model_validate(result)


@router.post("", response_model=SequenceResponse, status_code=201)
async def create_sequence(body: SequenceCreateRequest, actor: Actor, use_case: Lifecycle):
    """Create a draft sequence. Requires create_sequences."""
    sequence = await use_case.create(
        actor,
        name=body.name,
        steps=[s.to_entity() for s in body.steps],
        description=body.description,
        sequence_type=body.sequence_type,
        target_audience=body.target_audience,
    )
    return SequenceResponse.model_validate(sequence)


@router.get("/{sequence_id}", response_model=SequenceResponse)
async def get_sequence(sequence_id: str, use_case: Lifecycle):
    """Get a sequence with its steps."""
    return SequenceResponse.model_validate(await use_case.get(sequence_id))


@router.post("/{sequence_id}/submit", response_model=SequenceResponse)
async def submit_sequence(sequence_id: str, actor: Actor, use_case: Lifecycle):
    """Submit a draft for approval. Requires create_sequences."""
    return SequenceResponse.model_validate(await use_case.submit(sequence_id, actor))


@router.post("/{sequence_id}/approve", response_model=SequenceResponse)
async def approve_sequence(sequence_id: str, actor: Actor, use_case: Lifecycle):
    """Approve a pending sequence. Requires approve_sequences."""
    return SequenceResponse.model_validate(await use_case.approve(sequence_id, actor))


@router.post("/{sequence_id}/reject", response_model=SequenceResponse)
async def reject_sequence(
    sequence_id: str, body: SequenceRejectRequest, actor: Actor, use_case: Lifecycle
):
    """Send a pending or approved sequence back for revision. Requires approve_sequences."""
    sequence = await use_case.reject(sequence_id, actor, body.feedback)
    return SequenceResponse.model_validate(sequence)


@router.post("/{sequence_id}/activate", response_model=SequenceResponse)
async def activate_sequence(sequence_id: str, actor: Actor, use_case: Lifecycle):
    """Activate a pending, approved or paused sequence. Requires approve_sequences."""
    return SequenceResponse.model_validate(await use_case.activate(sequence_id, actor))


@router.post("/{sequence_id}/deactivate", response_model=SequenceResponse)
async def deactivate_sequence(
    sequence_id: str, body: SequenceDeactivateRequest, actor: Actor, use_case: Lifecycle
):
    """Pause an active sequence, or archive it. Requires approve_sequences."""
    sequence = await use_case.deactivate(sequence_id, actor, body.action)
    return SequenceResponse.model_validate(sequence)
