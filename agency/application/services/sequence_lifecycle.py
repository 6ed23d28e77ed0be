"""Sequence authoring lifecycle: submit, approve, reject, activate, deactivate."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from agency.domain.entities import SequenceEntity, validate_steps
from agency.domain.enums import SequenceStatus
from agency.domain.exceptions import InvalidTransitionError, ValidationException
from agency.shared.enums import _ValuesMixin

Q = SequenceStatus


class DeactivateAction(_ValuesMixin, str, Enum):
    PAUSE = "pause"
    ARCHIVE = "archive"


def _require(sequence: SequenceEntity, allowed: set[SequenceStatus], target: SequenceStatus) -> None:
    if sequence.status not in allowed:
        raise InvalidTransitionError("sequence", sequence.status.value, target.value)


def submit(sequence: SequenceEntity, now: datetime) -> None:
    """draft -> pending, after step validation."""
    _require(sequence, {Q.DRAFT}, Q.PENDING)
    errors = validate_steps(sequence.steps)
    if errors:
        raise ValidationException("; ".join(errors), field="steps")
    sequence.status = Q.PENDING
    sequence.updated_at = now


def approve(sequence: SequenceEntity, approver_id: str, now: datetime) -> None:
    """pending -> approved; records who approved and when."""
    _require(sequence, {Q.PENDING}, Q.APPROVED)
    sequence.status = Q.APPROVED
    sequence.approved_by_id = approver_id
    sequence.approved_at = now
    sequence.updated_at = now


def reject(sequence: SequenceEntity, feedback: str, now: datetime) -> None:
    """pending|approved -> pending with the feedback appended to the description."""
    _require(sequence, {Q.PENDING, Q.APPROVED}, Q.PENDING)
    if not feedback.strip():
        raise ValidationException("Rejection feedback is required", field="feedback")
    note = f"Rejection feedback: {feedback.strip()}"
    sequence.description = f"{sequence.description}\n\n{note}" if sequence.description else note
    sequence.status = Q.PENDING
    sequence.approved_by_id = None
    sequence.approved_at = None
    sequence.updated_at = now


def activate(sequence: SequenceEntity, actor_id: str, now: datetime) -> None:
    """pending|approved|paused -> active. Needs at least one active step.

    Activating a sequence that was never approved records the activating
    user as approver.
    """
    _require(sequence, {Q.PENDING, Q.APPROVED, Q.PAUSED}, Q.ACTIVE)
    if not sequence.active_steps:
        raise ValidationException("Sequence must have at least one active step", field="steps")
    sequence.status = Q.ACTIVE
    sequence.activated_at = now
    sequence.deactivated_at = None
    if sequence.approved_by_id is None:
        sequence.approved_by_id = actor_id
        sequence.approved_at = now
    sequence.updated_at = now


def deactivate(sequence: SequenceEntity, action: DeactivateAction, now: datetime) -> None:
    """active -> paused (pause) or any non-archived -> archived (archive)."""
    if action == DeactivateAction.PAUSE:
        _require(sequence, {Q.ACTIVE}, Q.PAUSED)
        sequence.status = Q.PAUSED
    else:
        _require(sequence, set(Q) - {Q.ARCHIVED}, Q.ARCHIVED)
        sequence.status = Q.ARCHIVED
    sequence.deactivated_at = now
    sequence.updated_at = now
