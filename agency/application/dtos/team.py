"""DTOs for team workload reporting."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmployeeWorkload:
    """Capacity snapshot for one employee."""

    employee_id: str
    name: str | None
    employee_role: str
    department: str
    weekly_capacity: float
    current_workload: float
    available_hours: float
    utilization_rate: int
    current_project_count: int
    max_concurrent_projects: int
    open_task_count: int
    active_assignment_count: int
    availability: str
