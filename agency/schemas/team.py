"""Team workload API schemas."""

from pydantic import BaseModel, ConfigDict


class EmployeeWorkloadResponse(BaseModel):
    """Capacity snapshot for one employee."""

    model_config = ConfigDict(from_attributes=True)

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
