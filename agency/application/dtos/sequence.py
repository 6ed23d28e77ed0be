"""DTOs for sequence assignment use cases."""

from __future__ import annotations

from dataclasses import dataclass, field

from agency.domain.entities import SequenceActivityEntity, SequenceAssignmentEntity


@dataclass(frozen=True)
class SkippedLead:
    """A lead left out of a bulk assignment."""

    lead_id: str
    reason: str


@dataclass
class BulkAssignResult:
    """Outcome of assigning one sequence to many leads."""

    sequence_id: str
    created: list[SequenceAssignmentEntity] = field(default_factory=list)
    skipped: list[SkippedLead] = field(default_factory=list)


@dataclass(frozen=True)
class StepRecordResult:
    """Assignment state after a step outcome was recorded."""

    assignment: SequenceAssignmentEntity
    activity: SequenceActivityEntity
