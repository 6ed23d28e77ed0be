"""Employee domain entity.

An employee is a schedulable resource: a weekly hour budget, a load counter,
a concurrent-project limit and a set of skill tags. Load counters are only
changed through the capacity ledger.
"""

from dataclasses import dataclass, field

from agency.domain.enums import Department, EmployeeRole, EmployeeStatus
from agency.domain.exceptions import ValidationException


@dataclass
class EmployeeEntity:
    """Domain entity for an employee's capacity and skills."""

    id: str
    user_id: str
    employee_role: EmployeeRole
    department: Department
    weekly_capacity: float = 40.0
    current_workload: float = 0.0
    current_project_count: int = 0
    max_concurrent_projects: int = 5
    available_for_work: bool = True
    skill_set: frozenset[str] = field(default_factory=frozenset)
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    name: str | None = None
    capability_overrides: dict[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.skill_set = frozenset(self.skill_set)
        self.validate()

    def validate(self) -> None:
        """Validate employee business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Employee ID is required", field="id")
        if self.weekly_capacity < 0:
            raise ValidationException(
                "Weekly capacity cannot be negative", field="weekly_capacity"
            )
        if self.max_concurrent_projects < 0:
            raise ValidationException(
                "Max concurrent projects cannot be negative",
                field="max_concurrent_projects",
            )
        if self.current_workload < 0 or self.current_project_count < 0:
            raise ValidationException("Load counters cannot be negative", field="current_workload")
