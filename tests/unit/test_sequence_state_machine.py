"""Sequence assignment state machine, step scheduling and authoring lifecycle."""

from datetime import UTC, datetime, timedelta

import pytest

from agency.application.services import sequence_lifecycle
from agency.application.services.sequence_lifecycle import DeactivateAction
from agency.application.services.sequence_state_machine import (
    apply_assignment_transition,
    check_assignment_transition,
    current_step,
    next_step_due_at,
)
from agency.domain.entities import (
    SequenceAssignmentEntity,
    SequenceEntity,
    SequenceStep,
    validate_steps,
)
from agency.domain.enums import DelayUnit, SequenceAssignmentStatus, SequenceStatus, StepType
from agency.domain.exceptions import InvalidTransitionError, ValidationException

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
S = SequenceAssignmentStatus


def email_step(order: int, **fields) -> SequenceStep:
    fields.setdefault("title", f"Email {order}")
    fields.setdefault("subject", "Hello")
    fields.setdefault("content", "Hi there")
    return SequenceStep(order=order, step_type=StepType.EMAIL, **fields)


def task_step(order: int, **fields) -> SequenceStep:
    fields.setdefault("title", f"Task {order}")
    fields.setdefault("content", "Call the lead")
    return SequenceStep(order=order, step_type=StepType.TASK, **fields)


def _assignment(status: SequenceAssignmentStatus = S.PENDING, **fields) -> SequenceAssignmentEntity:
    return SequenceAssignmentEntity(id="a1", sequence_id="s1", lead_id="l1", status=status, **fields)


def _sequence(status: SequenceStatus = SequenceStatus.DRAFT, steps=None, **fields) -> SequenceEntity:
    return SequenceEntity(
        id="s1",
        name="Welcome",
        status=status,
        steps=tuple(steps if steps is not None else [email_step(0), task_step(1)]),
        **fields,
    )


class TestAssignmentTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PENDING, S.ACTIVE),
            (S.PENDING, S.COMPLETED),
            (S.ACTIVE, S.PAUSED),
            (S.ACTIVE, S.COMPLETED),
            (S.PAUSED, S.ACTIVE),
            (S.PAUSED, S.COMPLETED),
        ],
    )
    def test_allowed_edges(self, current, target) -> None:
        check_assignment_transition(_assignment(current), target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PENDING, S.PAUSED),
            (S.ACTIVE, S.ACTIVE),
            (S.ACTIVE, S.PENDING),
            (S.COMPLETED, S.ACTIVE),
        ],
    )
    def test_refused_edges(self, current, target) -> None:
        with pytest.raises(InvalidTransitionError):
            check_assignment_transition(_assignment(current), target)

    def test_activation_logs_previous_and_new_status(self) -> None:
        assignment = _assignment()

        activity = apply_assignment_transition(assignment, S.ACTIVE, NOW)

        assert assignment.started_at == NOW
        assert activity.action_type == "sequence_active"
        assert activity.result == {"previousStatus": "pending", "newStatus": "active"}
        assert activity.assignment_id == "a1"

    def test_resume_keeps_original_start(self) -> None:
        started = NOW - timedelta(days=2)
        assignment = _assignment(S.PAUSED, started_at=started, paused_at=NOW - timedelta(days=1))

        apply_assignment_transition(assignment, S.ACTIVE, NOW)

        assert assignment.started_at == started
        assert assignment.paused_at is None


class TestStepScheduling:
    def test_first_step_due_now(self) -> None:
        assignment = _assignment(S.ACTIVE, started_at=NOW)
        assert next_step_due_at(assignment, _sequence(), None, NOW) == NOW

    def test_later_step_due_after_its_delay(self) -> None:
        steps = [email_step(0), task_step(1, delay_amount=2, delay_unit=DelayUnit.DAYS)]
        assignment = _assignment(S.ACTIVE, started_at=NOW, current_step=1)
        last = NOW + timedelta(hours=1)

        assert next_step_due_at(assignment, _sequence(steps=steps), last, NOW) == last + timedelta(
            days=2
        )

    def test_inactive_steps_are_skipped(self) -> None:
        steps = [email_step(0), task_step(1, active=False), email_step(2, title="Follow up")]
        assignment = _assignment(S.ACTIVE, current_step=1)
        assert current_step(assignment, _sequence(steps=steps)).title == "Follow up"

    def test_nothing_due_when_not_active_or_finished(self) -> None:
        sequence = _sequence()
        assert next_step_due_at(_assignment(S.PAUSED), sequence, None, NOW) is None
        finished = _assignment(S.ACTIVE, started_at=NOW, current_step=2)
        assert next_step_due_at(finished, sequence, NOW, NOW) is None

    def test_estimated_duration_sums_active_delays(self) -> None:
        steps = [
            email_step(0, delay_amount=1, delay_unit=DelayUnit.HOURS),
            task_step(1, delay_amount=1, delay_unit=DelayUnit.WEEKS),
            task_step(2, delay_amount=3, delay_unit=DelayUnit.DAYS, active=False),
        ]
        assert _sequence(steps=steps).estimated_duration() == timedelta(days=7, hours=1)


class TestSequenceLifecycle:
    def test_validate_steps_reports_each_problem(self) -> None:
        errors = validate_steps([email_step(0, subject=" ", content=None), task_step(1, content="")])
        assert errors == [
            "Step 1: Email subject is required",
            "Step 1: Email content is required",
            "Step 2: Task description is required",
        ]
        assert validate_steps([]) == ["Sequence must have at least one step"]

    def test_submit_validates_steps(self) -> None:
        with pytest.raises(ValidationException):
            sequence_lifecycle.submit(_sequence(steps=[email_step(0, subject="")]), NOW)

        sequence = _sequence()
        sequence_lifecycle.submit(sequence, NOW)
        assert sequence.status == SequenceStatus.PENDING

    def test_approve_records_approver(self) -> None:
        sequence = _sequence(SequenceStatus.PENDING)
        sequence_lifecycle.approve(sequence, "manager-1", NOW)
        assert (sequence.status, sequence.approved_by_id, sequence.approved_at) == (
            SequenceStatus.APPROVED,
            "manager-1",
            NOW,
        )

    def test_approve_requires_pending(self) -> None:
        with pytest.raises(InvalidTransitionError):
            sequence_lifecycle.approve(_sequence(SequenceStatus.DRAFT), "manager-1", NOW)

    def test_reject_appends_feedback_and_clears_approval(self) -> None:
        sequence = _sequence(
            SequenceStatus.APPROVED, description="Intro", approved_by_id="manager-1", approved_at=NOW
        )

        sequence_lifecycle.reject(sequence, "Tone is too formal", NOW)

        assert sequence.status == SequenceStatus.PENDING
        assert sequence.description == "Intro\n\nRejection feedback: Tone is too formal"
        assert sequence.approved_by_id is None
        with pytest.raises(ValidationException):
            sequence_lifecycle.reject(sequence, "  ", NOW)

    def test_activate_without_prior_approval_records_activator(self) -> None:
        sequence = _sequence(SequenceStatus.PENDING)
        sequence_lifecycle.activate(sequence, "admin-1", NOW)
        assert sequence.status == SequenceStatus.ACTIVE
        assert sequence.approved_by_id == "admin-1"

    def test_activate_needs_an_active_step(self) -> None:
        sequence = _sequence(SequenceStatus.APPROVED, steps=[email_step(0, active=False)])
        with pytest.raises(ValidationException):
            sequence_lifecycle.activate(sequence, "admin-1", NOW)

    def test_pause_and_archive(self) -> None:
        sequence = _sequence(SequenceStatus.ACTIVE)
        sequence_lifecycle.deactivate(sequence, DeactivateAction.PAUSE, NOW)
        assert sequence.status == SequenceStatus.PAUSED

        with pytest.raises(InvalidTransitionError):
            sequence_lifecycle.deactivate(sequence, DeactivateAction.PAUSE, NOW)

        sequence_lifecycle.deactivate(sequence, DeactivateAction.ARCHIVE, NOW)
        assert sequence.status == SequenceStatus.ARCHIVED
        with pytest.raises(InvalidTransitionError):
            sequence_lifecycle.deactivate(sequence, DeactivateAction.ARCHIVE, NOW)
