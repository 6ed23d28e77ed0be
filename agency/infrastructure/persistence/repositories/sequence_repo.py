"""Sequence, sequence assignment and activity repository (SQLAlchemy)."""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from agency.domain.entities import (
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    SequenceStep as SequenceStepEntity,
)
from agency.domain.enums import DelayUnit, SequenceAssignmentStatus, SequenceStatus, StepType
from agency.domain.exceptions import (
    DuplicateActiveAssignmentError,
    NotFoundError,
    VersionConflictError,
)
from agency.infrastructure.persistence.models.sequence import (
    Sequence,
    SequenceActivity,
    SequenceAssignment,
    SequenceStep,
)
from agency.infrastructure.persistence.repositories.base import (
    SqlRepository,
    translate_store_errors,
)
from agency.shared.telemetry.logging import get_logger
from agency.shared.utils.datetime import utc_now

logger = get_logger(__name__)

_OPEN_ASSIGNMENT_STATUSES = [s.value for s in SequenceAssignmentStatus.non_terminal()]


def _step_to_entity(s: SequenceStep) -> SequenceStepEntity:
    return SequenceStepEntity(
        id=s.id,
        order=s.step_order,
        step_type=StepType(s.step_type),
        title=s.title,
        content=s.content,
        subject=s.subject,
        delay_amount=s.delay_amount,
        delay_unit=DelayUnit(s.delay_unit),
        active=s.active,
    )


def _sequence_to_entity(s: Sequence, steps: list[SequenceStep]) -> SequenceEntity:
    """Map Sequence ORM (plus its step rows) to SequenceEntity."""
    return SequenceEntity(
        id=s.id,
        name=s.name,
        status=SequenceStatus(s.status),
        description=s.description,
        sequence_type=s.sequence_type,
        target_audience=s.target_audience,
        steps=tuple(_step_to_entity(st) for st in steps),
        approved_by_id=s.approved_by_id,
        approved_at=s.approved_at,
        activated_at=s.activated_at,
        deactivated_at=s.deactivated_at,
        times_used=s.times_used,
        created_by=s.created_by,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _assignment_to_entity(a: SequenceAssignment) -> SequenceAssignmentEntity:
    """Map SequenceAssignment ORM to SequenceAssignmentEntity."""
    return SequenceAssignmentEntity(
        id=a.id,
        sequence_id=a.sequence_id,
        lead_id=a.lead_id,
        status=SequenceAssignmentStatus(a.status),
        current_step=a.current_step,
        steps_completed=a.steps_completed,
        emails_sent=a.emails_sent,
        tasks_created=a.tasks_created,
        assigned_by_id=a.assigned_by_id,
        notes=a.notes,
        started_at=a.started_at,
        paused_at=a.paused_at,
        completed_at=a.completed_at,
        version=a.version,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _activity_to_entity(a: SequenceActivity) -> SequenceActivityEntity:
    return SequenceActivityEntity(
        id=a.id,
        assignment_id=a.assignment_id,
        step_order=a.step_order,
        action_type=a.action_type,
        result=dict(a.result or {}),
        error=a.error,
        timestamp=a.timestamp,
    )


class SequenceRepository(SqlRepository):
    """Sequence repository. Implements ISequenceRepository."""

    @translate_store_errors
    async def get_sequence(self, sequence_id: str) -> SequenceEntity | None:
        row = await self._scalar_one_or_none(select(Sequence).where(Sequence.id == sequence_id))
        if row is None:
            return None
        steps = await self._scalars(
            select(SequenceStep)
            .where(SequenceStep.sequence_id == sequence_id)
            .order_by(SequenceStep.step_order.asc())
        )
        return _sequence_to_entity(row, steps)

    async def create_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        row = Sequence(
            id=sequence.id,
            name=sequence.name,
            description=sequence.description,
            status=sequence.status.value,
            sequence_type=sequence.sequence_type,
            target_audience=sequence.target_audience,
            times_used=sequence.times_used,
            created_by=sequence.created_by,
        )
        self.db.add(row)
        await self.db.flush()
        self.db.add_all(
            SequenceStep(
                sequence_id=row.id,
                step_order=s.order,
                step_type=s.step_type.value,
                title=s.title,
                content=s.content,
                subject=s.subject,
                delay_amount=s.delay_amount,
                delay_unit=s.delay_unit.value,
                active=s.active,
            )
            for s in sequence.steps
        )
        await self.db.flush()
        created = await self.get_sequence(row.id)
        if created is None:
            raise NotFoundError("sequence", row.id)
        return created

    async def update_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        result = await self.db.execute(
            update(Sequence)
            .where(Sequence.id == sequence.id)
            .values(
                name=sequence.name,
                description=sequence.description,
                status=sequence.status.value,
                approved_by_id=sequence.approved_by_id,
                approved_at=sequence.approved_at,
                activated_at=sequence.activated_at,
                deactivated_at=sequence.deactivated_at,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("sequence", sequence.id)
        saved = await self.get_sequence(sequence.id)
        if saved is None:
            raise NotFoundError("sequence", sequence.id)
        return saved

    async def increment_times_used(self, sequence_id: str, count: int) -> None:
        await self.db.execute(
            update(Sequence)
            .where(Sequence.id == sequence_id)
            .values(times_used=Sequence.times_used + count)
            .execution_options(synchronize_session=False)
        )

    @translate_store_errors
    async def get_assignment(self, assignment_id: str) -> SequenceAssignmentEntity | None:
        row = await self._scalar_one_or_none(
            select(SequenceAssignment).where(SequenceAssignment.id == assignment_id)
        )
        return _assignment_to_entity(row) if row else None

    async def find_open_assignment(
        self, sequence_id: str, lead_id: str
    ) -> SequenceAssignmentEntity | None:
        row = await self._scalar_one_or_none(
            select(SequenceAssignment).where(
                SequenceAssignment.sequence_id == sequence_id,
                SequenceAssignment.lead_id == lead_id,
                SequenceAssignment.status.in_(_OPEN_ASSIGNMENT_STATUSES),
            )
        )
        return _assignment_to_entity(row) if row else None

    async def create_assignment(
        self, assignment: SequenceAssignmentEntity
    ) -> SequenceAssignmentEntity:
        """Insert inside a savepoint; the partial unique index rejects a second open pair."""
        row = SequenceAssignment(
            id=assignment.id,
            sequence_id=assignment.sequence_id,
            lead_id=assignment.lead_id,
            status=assignment.status.value,
            current_step=assignment.current_step,
            steps_completed=assignment.steps_completed,
            emails_sent=assignment.emails_sent,
            tasks_created=assignment.tasks_created,
            assigned_by_id=assignment.assigned_by_id,
            notes=assignment.notes,
            started_at=assignment.started_at,
            paused_at=assignment.paused_at,
            completed_at=assignment.completed_at,
            version=assignment.version,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(row)
                await self.db.flush()
        except IntegrityError:
            existing = await self.find_open_assignment(assignment.sequence_id, assignment.lead_id)
            logger.info(
                "Concurrent open assignment for sequence %s lead %s",
                assignment.sequence_id,
                assignment.lead_id,
            )
            raise DuplicateActiveAssignmentError(
                assignment.sequence_id,
                assignment.lead_id,
                existing.id if existing else None,
            ) from None
        await self.db.refresh(row)
        return _assignment_to_entity(row)

    @translate_store_errors
    async def update_assignment(
        self, assignment: SequenceAssignmentEntity, expected_version: int
    ) -> SequenceAssignmentEntity:
        """Compare-and-swap on version inside a savepoint.

        Resuming into a pair that already has another open assignment trips
        the partial unique index and surfaces as DuplicateActiveAssignmentError.
        """
        stmt = (
            update(SequenceAssignment)
            .where(
                SequenceAssignment.id == assignment.id,
                SequenceAssignment.version == expected_version,
            )
            .values(
                status=assignment.status.value,
                current_step=assignment.current_step,
                steps_completed=assignment.steps_completed,
                emails_sent=assignment.emails_sent,
                tasks_created=assignment.tasks_created,
                notes=assignment.notes,
                started_at=assignment.started_at,
                paused_at=assignment.paused_at,
                completed_at=assignment.completed_at,
                version=expected_version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(stmt)
        except IntegrityError:
            existing = await self.find_open_assignment(assignment.sequence_id, assignment.lead_id)
            raise DuplicateActiveAssignmentError(
                assignment.sequence_id,
                assignment.lead_id,
                existing.id if existing else None,
            ) from None
        if result.rowcount == 0:
            if await self.get_assignment(assignment.id) is None:
                raise NotFoundError("sequence_assignment", assignment.id)
            raise VersionConflictError("sequence_assignment", assignment.id, expected_version)
        saved = await self.get_assignment(assignment.id)
        if saved is None:
            raise NotFoundError("sequence_assignment", assignment.id)
        return saved

    async def list_assignments(
        self,
        sequence_id: str | None = None,
        lead_id: str | None = None,
        status: SequenceAssignmentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[SequenceAssignmentEntity]:
        q = select(SequenceAssignment)
        if sequence_id is not None:
            q = q.where(SequenceAssignment.sequence_id == sequence_id)
        if lead_id is not None:
            q = q.where(SequenceAssignment.lead_id == lead_id)
        if status is not None:
            q = q.where(SequenceAssignment.status == status.value)
        q = q.order_by(SequenceAssignment.created_at.desc(), SequenceAssignment.id.desc())
        rows = await self._scalars(q.offset(skip).limit(limit))
        return [_assignment_to_entity(r) for r in rows]

    async def add_activity(self, activity: SequenceActivityEntity) -> SequenceActivityEntity:
        row = SequenceActivity(
            id=activity.id,
            assignment_id=activity.assignment_id,
            step_order=activity.step_order,
            action_type=activity.action_type,
            result=dict(activity.result),
            error=activity.error,
            timestamp=activity.timestamp or utc_now(),
        )
        self.db.add(row)
        await self.db.flush()
        return _activity_to_entity(row)

    async def list_activities(self, assignment_id: str) -> list[SequenceActivityEntity]:
        rows = await self._scalars(
            select(SequenceActivity)
            .where(SequenceActivity.assignment_id == assignment_id)
            .order_by(SequenceActivity.timestamp.asc(), SequenceActivity.id.asc())
        )
        return [_activity_to_entity(r) for r in rows]
