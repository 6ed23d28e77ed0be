"""Sequence assignment state machine.

Transition table, the apply step that stamps timestamps, and the activity
record written for each transition. Pure functions; persistence is left to
the use cases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from agency.domain.entities import (
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    SequenceStep,
)
from agency.domain.enums import SequenceAssignmentStatus
from agency.domain.exceptions import InvalidTransitionError
from agency.shared.utils.generators import generate_cuid

S = SequenceAssignmentStatus

ASSIGNMENT_TRANSITIONS: dict[SequenceAssignmentStatus, frozenset[SequenceAssignmentStatus]] = {
    S.PENDING: frozenset({S.ACTIVE, S.COMPLETED}),
    S.ACTIVE: frozenset({S.PAUSED, S.COMPLETED}),
    S.PAUSED: frozenset({S.ACTIVE, S.COMPLETED}),
    S.COMPLETED: frozenset(),
}


def check_assignment_transition(
    assignment: SequenceAssignmentEntity, target: SequenceAssignmentStatus
) -> None:
    """Raise InvalidTransitionError unless the edge is allowed (same-status included)."""
    if target not in ASSIGNMENT_TRANSITIONS[assignment.status]:
        raise InvalidTransitionError(
            "sequence_assignment", assignment.status.value, target.value
        )


def build_activity(
    assignment: SequenceAssignmentEntity,
    action_type: str,
    now: datetime,
    *,
    result: dict[str, Any] | None = None,
    error: str | None = None,
    step_order: int | None = None,
) -> SequenceActivityEntity:
    return SequenceActivityEntity(
        id=generate_cuid(),
        assignment_id=assignment.id,
        step_order=assignment.current_step if step_order is None else step_order,
        action_type=action_type,
        result=result or {},
        error=error,
        timestamp=now,
    )


def apply_assignment_transition(
    assignment: SequenceAssignmentEntity,
    target: SequenceAssignmentStatus,
    now: datetime,
) -> SequenceActivityEntity:
    """Move assignment to target and return the activity describing the change."""
    previous = assignment.status
    assignment.status = target
    if target == S.ACTIVE:
        if assignment.started_at is None:
            assignment.started_at = now
        assignment.paused_at = None
    elif target == S.PAUSED:
        assignment.paused_at = now
    elif target == S.COMPLETED:
        assignment.completed_at = now
    return build_activity(
        assignment,
        f"sequence_{target.value}",
        now,
        result={"previousStatus": previous.value, "newStatus": target.value},
    )


def current_step(
    assignment: SequenceAssignmentEntity, sequence: SequenceEntity
) -> SequenceStep | None:
    """The active step the assignment is positioned on, or None past the end."""
    steps = sequence.active_steps
    if 0 <= assignment.current_step < len(steps):
        return steps[assignment.current_step]
    return None


def next_step_due_at(
    assignment: SequenceAssignmentEntity,
    sequence: SequenceEntity,
    last_activity_at: datetime | None,
    now: datetime,
) -> datetime | None:
    """When the current step should run; None if the assignment cannot advance.

    The first step (or any step without a prior activity) is due immediately;
    later steps are due their delay after the last logged activity.
    """
    if assignment.status != S.ACTIVE:
        return None
    step = current_step(assignment, sequence)
    if step is None:
        return None
    if assignment.current_step == 0 or assignment.started_at is None or last_activity_at is None:
        return now
    return last_activity_at + step.delay
