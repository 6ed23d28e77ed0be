"""Application DTOs (no ORM dependency)."""

from agency.application.dtos.sequence import BulkAssignResult, SkippedLead, StepRecordResult
from agency.application.dtos.team import EmployeeWorkload
from agency.application.dtos.workflow import (
    AssignmentPlan,
    TaskAssignment,
    TaskUpdateResult,
    UnassignedTask,
    WorkflowDetail,
)

__all__ = [
    "AssignmentPlan",
    "BulkAssignResult",
    "EmployeeWorkload",
    "SkippedLead",
    "StepRecordResult",
    "TaskAssignment",
    "TaskUpdateResult",
    "UnassignedTask",
    "WorkflowDetail",
]
