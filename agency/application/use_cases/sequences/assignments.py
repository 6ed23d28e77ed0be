"""Sequence assignment use cases: create (single and bulk) and status updates."""

from __future__ import annotations

from agency.application.dtos.sequence import BulkAssignResult, SkippedLead
from agency.application.interfaces.repositories import ILeadRepository, ISequenceRepository
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.sequence_state_machine import (
    apply_assignment_transition,
    check_assignment_transition,
)
from agency.domain.entities import (
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
)
from agency.domain.enums import SequenceAssignmentStatus
from agency.domain.exceptions import (
    DuplicateActiveAssignmentError,
    NotFoundError,
    ValidationException,
)
from agency.shared.context import get_current_actor_id
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced
from agency.shared.utils.datetime import utc_now
from agency.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


async def _assignable_sequence(repo: ISequenceRepository, sequence_id: str) -> SequenceEntity:
    sequence = await repo.get_sequence(sequence_id)
    if sequence is None:
        raise NotFoundError("sequence", sequence_id)
    if not sequence.is_assignable():
        raise ValidationException(
            f"Sequence must be approved before assignment (status: {sequence.status.value})",
            field="sequence_id",
        )
    return sequence


class CreateSequenceAssignmentUseCase:
    """Attaches an approved sequence to one lead."""

    def __init__(self, sequence_repo: ISequenceRepository, lead_repo: ILeadRepository) -> None:
        self._sequence_repo = sequence_repo
        self._lead_repo = lead_repo

    @traced("sequence.create_assignment")
    async def execute(
        self,
        sequence_id: str,
        lead_id: str,
        *,
        auto_start: bool = False,
        notes: str | None = None,
        assigned_by_id: str | None = None,
    ) -> SequenceAssignmentEntity:
        """Create a pending (or, with auto_start, active) assignment.

        Raises:
            NotFoundError: Sequence or lead does not exist.
            ValidationException: Sequence is not approved/active.
            DuplicateActiveAssignmentError: An open assignment for the pair exists.
        """
        await _assignable_sequence(self._sequence_repo, sequence_id)
        if await self._lead_repo.get_by_id(lead_id) is None:
            raise NotFoundError("lead", lead_id)
        created = await self.create_one(
            sequence_id, lead_id, auto_start=auto_start, notes=notes, assigned_by_id=assigned_by_id
        )
        await self._sequence_repo.increment_times_used(sequence_id, 1)
        return created

    async def create_one(
        self,
        sequence_id: str,
        lead_id: str,
        *,
        auto_start: bool,
        notes: str | None,
        assigned_by_id: str | None,
    ) -> SequenceAssignmentEntity:
        """Insert one assignment for an already validated sequence and lead."""
        existing = await self._sequence_repo.find_open_assignment(sequence_id, lead_id)
        if existing is not None:
            raise DuplicateActiveAssignmentError(sequence_id, lead_id, existing.id)
        now = utc_now()
        assignment = SequenceAssignmentEntity(
            id=generate_cuid(),
            sequence_id=sequence_id,
            lead_id=lead_id,
            assigned_by_id=assigned_by_id or get_current_actor_id(),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        activity: SequenceActivityEntity | None = None
        if auto_start:
            activity = apply_assignment_transition(assignment, SequenceAssignmentStatus.ACTIVE, now)
        created = await self._sequence_repo.create_assignment(assignment)
        if activity is not None:
            await self._sequence_repo.add_activity(activity)
        logger.info(
            "Assigned sequence %s to lead %s (%s)", sequence_id, lead_id, created.status.value
        )
        return created


class BulkAssignSequenceUseCase:
    """Attaches one sequence to many leads, skipping leads that already have it open."""

    def __init__(
        self,
        sequence_repo: ISequenceRepository,
        lead_repo: ILeadRepository,
        creator: CreateSequenceAssignmentUseCase,
    ) -> None:
        self._sequence_repo = sequence_repo
        self._lead_repo = lead_repo
        self._creator = creator

    @traced("sequence.bulk_assign")
    async def execute(
        self,
        sequence_id: str,
        lead_ids: list[str],
        *,
        auto_start: bool = False,
        assigned_by_id: str | None = None,
    ) -> BulkAssignResult:
        """Assign to each lead; duplicates and unknown leads are reported, not raised."""
        if not lead_ids:
            raise ValidationException("At least one lead is required", field="lead_ids")
        await _assignable_sequence(self._sequence_repo, sequence_id)
        known = {lead.id for lead in await self._lead_repo.get_by_ids(lead_ids)}
        result = BulkAssignResult(sequence_id=sequence_id)
        for lead_id in dict.fromkeys(lead_ids):
            if lead_id not in known:
                result.skipped.append(SkippedLead(lead_id=lead_id, reason="lead not found"))
                continue
            try:
                created = await self._creator.create_one(
                    sequence_id,
                    lead_id,
                    auto_start=auto_start,
                    notes=None,
                    assigned_by_id=assigned_by_id,
                )
            except DuplicateActiveAssignmentError:
                result.skipped.append(SkippedLead(lead_id=lead_id, reason="already assigned"))
                continue
            result.created.append(created)
        if result.created:
            await self._sequence_repo.increment_times_used(sequence_id, len(result.created))
        logger.info(
            "Bulk assigned sequence %s: %d created, %d skipped",
            sequence_id,
            len(result.created),
            len(result.skipped),
        )
        return result


class UpdateSequenceAssignmentStatusUseCase:
    """Moves an assignment along its state machine and/or edits its notes."""

    def __init__(self, sequence_repo: ISequenceRepository, retry_policy: RetryPolicy) -> None:
        self._sequence_repo = sequence_repo
        self._retry_policy = retry_policy

    @traced("sequence.update_assignment_status")
    async def execute(
        self,
        assignment_id: str,
        new_status: SequenceAssignmentStatus | None = None,
        *,
        notes: str | None = None,
    ) -> SequenceAssignmentEntity:
        """Apply the transition and log one activity for it.

        A notes-only update performs no transition and logs nothing.

        Raises:
            NotFoundError: Assignment does not exist.
            InvalidTransitionError: Edge not allowed (including same status).
            DuplicateActiveAssignmentError: Resuming while another open assignment
                exists for the same sequence and lead.
            TransientStoreError: Write kept conflicting.
        """

        async def attempt() -> tuple[SequenceAssignmentEntity, SequenceActivityEntity | None]:
            assignment = await self._sequence_repo.get_assignment(assignment_id)
            if assignment is None:
                raise NotFoundError("sequence_assignment", assignment_id)
            expected_version = assignment.version
            now = utc_now()
            activity = None
            if new_status is not None:
                check_assignment_transition(assignment, new_status)
                activity = apply_assignment_transition(assignment, new_status, now)
            if notes is not None:
                assignment.notes = notes
            if activity is None and notes is None:
                return assignment, None
            assignment.updated_at = now
            saved = await self._sequence_repo.update_assignment(assignment, expected_version)
            return saved, activity

        assignment, activity = await retry_on_conflict(
            attempt, self._retry_policy, name="update_sequence_assignment"
        )
        if activity is not None:
            await self._sequence_repo.add_activity(activity)
            logger.info("Sequence assignment %s -> %s", assignment_id, assignment.status.value)
        return assignment


class GetSequenceAssignmentsUseCase:
    """Read side for assignments and their activity log."""

    def __init__(self, sequence_repo: ISequenceRepository) -> None:
        self._sequence_repo = sequence_repo

    async def execute(
        self, assignment_id: str
    ) -> tuple[SequenceAssignmentEntity, list[SequenceActivityEntity]]:
        assignment = await self._sequence_repo.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("sequence_assignment", assignment_id)
        return assignment, await self._sequence_repo.list_activities(assignment_id)

    async def list_assignments(
        self,
        sequence_id: str | None = None,
        lead_id: str | None = None,
        status: SequenceAssignmentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[SequenceAssignmentEntity]:
        return await self._sequence_repo.list_assignments(
            sequence_id=sequence_id, lead_id=lead_id, status=status, skip=skip, limit=limit
        )
