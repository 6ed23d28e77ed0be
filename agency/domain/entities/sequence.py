"""Sequence domain entities.

A Sequence is an ordered list of outreach steps that goes through an
authoring/approval lifecycle. A SequenceAssignment applies one sequence to
one lead; every status change and step outcome is logged as a
SequenceActivity.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from agency.domain.enums import DelayUnit, SequenceAssignmentStatus, SequenceStatus, StepType

_DELAY_UNIT_SECONDS: dict[DelayUnit, int] = {
    DelayUnit.MINUTES: 60,
    DelayUnit.HOURS: 60 * 60,
    DelayUnit.DAYS: 24 * 60 * 60,
    DelayUnit.WEEKS: 7 * 24 * 60 * 60,
}


@dataclass(frozen=True)
class SequenceStep:
    """One step of a sequence. The delay is measured from the previous step."""

    order: int
    step_type: StepType
    title: str
    content: str | None = None
    subject: str | None = None
    delay_amount: int = 0
    delay_unit: DelayUnit = DelayUnit.HOURS
    active: bool = True
    id: str | None = None

    @property
    def delay(self) -> timedelta:
        return timedelta(seconds=self.delay_amount * _DELAY_UNIT_SECONDS[self.delay_unit])


def validate_steps(steps: list[SequenceStep] | tuple[SequenceStep, ...]) -> list[str]:
    """Return human-readable problems with a step list (empty when valid)."""
    errors: list[str] = []
    if not steps:
        errors.append("Sequence must have at least one step")
    for index, step in enumerate(steps, start=1):
        if not (step.title or "").strip():
            errors.append(f"Step {index}: Title is required")
        if step.step_type == StepType.EMAIL:
            if not (step.subject or "").strip():
                errors.append(f"Step {index}: Email subject is required")
            if not (step.content or "").strip():
                errors.append(f"Step {index}: Email content is required")
        if step.step_type == StepType.TASK and not (step.content or "").strip():
            errors.append(f"Step {index}: Task description is required")
        if step.delay_amount < 0:
            errors.append(f"Step {index}: Delay amount cannot be negative")
    return errors


@dataclass
class SequenceEntity:
    """Outreach sequence template with approval metadata."""

    id: str
    name: str
    status: SequenceStatus = SequenceStatus.DRAFT
    description: str | None = None
    sequence_type: str = "email"
    target_audience: str = "new_lead"
    steps: tuple[SequenceStep, ...] = ()
    approved_by_id: str | None = None
    approved_at: datetime | None = None
    activated_at: datetime | None = None
    deactivated_at: datetime | None = None
    times_used: int = 0
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def active_steps(self) -> list[SequenceStep]:
        """Active steps in execution order."""
        return sorted((s for s in self.steps if s.active), key=lambda s: s.order)

    def estimated_duration(self) -> timedelta:
        """Sum of the delays of all active steps."""
        return sum((s.delay for s in self.active_steps), timedelta())

    def is_assignable(self) -> bool:
        return self.status in SequenceStatus.assignable()


@dataclass
class SequenceAssignmentEntity:
    """A sequence applied to a lead.

    current_step indexes the sequence's active steps. version backs
    optimistic compare-and-swap writes.
    """

    id: str
    sequence_id: str
    lead_id: str
    status: SequenceAssignmentStatus = SequenceAssignmentStatus.PENDING
    current_step: int = 0
    steps_completed: int = 0
    emails_sent: int = 0
    tasks_created: int = 0
    assigned_by_id: str | None = None
    notes: str | None = None
    started_at: datetime | None = None
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SequenceActivityEntity:
    """Append-only audit record for a sequence assignment."""

    id: str
    assignment_id: str
    step_order: int
    action_type: str
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    timestamp: datetime | None = None
