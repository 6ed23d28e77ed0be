"""Application services: the assignment engine and the state machines."""

from agency.application.services.capacity_ledger import (
    CapacityLedger,
    available_hours,
    has_project_slot,
    is_eligible,
    workload_summary,
)
from agency.application.services.progress_tracker import ProgressTracker
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.skill_matcher import Candidate, rank_candidates, score
from agency.application.services.team_assignment_planner import TeamAssignmentPlanner

__all__ = [
    "CapacityLedger",
    "Candidate",
    "ProgressTracker",
    "RetryPolicy",
    "TeamAssignmentPlanner",
    "available_hours",
    "has_project_slot",
    "is_eligible",
    "rank_candidates",
    "retry_on_conflict",
    "score",
    "workload_summary",
]
