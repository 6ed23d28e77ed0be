"""Sequence use cases: lifecycle, assignments, step recording."""

from agency.application.use_cases.sequences.assignments import (
    BulkAssignSequenceUseCase,
    CreateSequenceAssignmentUseCase,
    GetSequenceAssignmentsUseCase,
    UpdateSequenceAssignmentStatusUseCase,
)
from agency.application.use_cases.sequences.lifecycle import SequenceLifecycleUseCase
from agency.application.use_cases.sequences.steps import RecordSequenceStepUseCase

__all__ = [
    "BulkAssignSequenceUseCase",
    "CreateSequenceAssignmentUseCase",
    "GetSequenceAssignmentsUseCase",
    "RecordSequenceStepUseCase",
    "SequenceLifecycleUseCase",
    "UpdateSequenceAssignmentStatusUseCase",
]
