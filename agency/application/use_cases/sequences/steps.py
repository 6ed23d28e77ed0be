"""Step execution hook: records a step outcome and advances the assignment.

The driver that actually sends emails/SMS lives outside the engine; it
reports each attempt here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from agency.application.dtos.sequence import StepRecordResult
from agency.application.interfaces.repositories import ISequenceRepository
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.sequence_state_machine import (
    apply_assignment_transition,
    build_activity,
    current_step,
    next_step_due_at,
)
from agency.domain.entities import SequenceActivityEntity, SequenceAssignmentEntity
from agency.domain.enums import SequenceAssignmentStatus, StepType
from agency.domain.exceptions import InvalidTransitionError, NotFoundError
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced
from agency.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class RecordSequenceStepUseCase:
    """Logs step outcomes and moves assignments through their steps."""

    def __init__(self, sequence_repo: ISequenceRepository, retry_policy: RetryPolicy) -> None:
        self._sequence_repo = sequence_repo
        self._retry_policy = retry_policy

    @traced("sequence.record_step")
    async def execute(
        self,
        assignment_id: str,
        *,
        success: bool,
        details: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> StepRecordResult:
        """Record the outcome of the assignment's current step.

        On success the assignment advances; past the last active step it is
        completed. A failed step is logged and the position is kept.

        Raises:
            NotFoundError: Assignment or sequence does not exist.
            InvalidTransitionError: Assignment is not active.
        """

        async def attempt() -> tuple[SequenceAssignmentEntity, list[SequenceActivityEntity]]:
            assignment = await self._sequence_repo.get_assignment(assignment_id)
            if assignment is None:
                raise NotFoundError("sequence_assignment", assignment_id)
            if assignment.status != SequenceAssignmentStatus.ACTIVE:
                raise InvalidTransitionError(
                    "sequence_assignment",
                    assignment.status.value,
                    "next_step",
                    reason="only active assignments advance",
                )
            sequence = await self._sequence_repo.get_sequence(assignment.sequence_id)
            if sequence is None:
                raise NotFoundError("sequence", assignment.sequence_id)
            expected_version = assignment.version
            now = utc_now()
            step = current_step(assignment, sequence)
            if step is None:
                done = apply_assignment_transition(assignment, SequenceAssignmentStatus.COMPLETED, now)
                assignment.updated_at = now
                saved = await self._sequence_repo.update_assignment(assignment, expected_version)
                return saved, [done]

            outcome = "sent" if success else "failed"
            activities = [
                build_activity(
                    assignment,
                    f"{step.step_type.value}_{outcome}",
                    now,
                    result=details,
                    error=error,
                    step_order=step.order,
                )
            ]
            if success:
                assignment.current_step += 1
                assignment.steps_completed += 1
                if step.step_type == StepType.EMAIL:
                    assignment.emails_sent += 1
                elif step.step_type == StepType.TASK:
                    assignment.tasks_created += 1
                if current_step(assignment, sequence) is None:
                    activities.append(
                        apply_assignment_transition(
                            assignment, SequenceAssignmentStatus.COMPLETED, now
                        )
                    )
            assignment.updated_at = now
            saved = await self._sequence_repo.update_assignment(assignment, expected_version)
            return saved, activities

        assignment, activities = await retry_on_conflict(
            attempt, self._retry_policy, name="record_sequence_step"
        )
        for activity in activities:
            await self._sequence_repo.add_activity(activity)
        if not success:
            logger.warning(
                "Step %d of assignment %s failed: %s",
                activities[0].step_order,
                assignment_id,
                error,
            )
        return StepRecordResult(assignment=assignment, activity=activities[0])

    async def next_due_at(self, assignment_id: str) -> datetime | None:
        """When the assignment's current step should run (None if it cannot advance)."""
        assignment = await self._sequence_repo.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("sequence_assignment", assignment_id)
        sequence = await self._sequence_repo.get_sequence(assignment.sequence_id)
        if sequence is None:
            raise NotFoundError("sequence", assignment.sequence_id)
        activities = await self._sequence_repo.list_activities(assignment_id)
        last_at = activities[-1].timestamp if activities else None
        return next_step_due_at(assignment, sequence, last_at, utc_now())
