"""Employee and Lead ORM models."""

from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agency.domain.enums import Department, EmployeeRole, EmployeeStatus
from agency.infrastructure.persistence.database import Base
from agency.infrastructure.persistence.models.mixins import EngineModel, values_check


class Employee(EngineModel, Base):
    """Staff member with capacity counters. Table: employee.

    current_workload and current_project_count are only changed through
    atomic increments (EmployeeRepository.adjust_load).
    """

    __tablename__ = "employee"

    user_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    employee_role: Mapped[str] = mapped_column(String, nullable=False, index=True)
    department: Mapped[str] = mapped_column(String, nullable=False)
    weekly_capacity: Mapped[float] = mapped_column(
        Float, nullable=False, default=40.0, server_default=sa.text("40")
    )
    current_workload: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    current_project_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    max_concurrent_projects: Mapped[int] = mapped_column(
        Integer, nullable=False, default=5, server_default=sa.text("5")
    )
    available_for_work: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    skill_set: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=EmployeeStatus.ACTIVE.value, index=True
    )
    capability_overrides: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    __table_args__ = (
        values_check("status", EmployeeStatus.values(), "employee_status_check"),
        values_check("employee_role", EmployeeRole.values(), "employee_role_check"),
        values_check("department", Department.values(), "employee_department_check"),
        sa.CheckConstraint("current_workload >= 0", name="employee_workload_non_negative"),
        sa.CheckConstraint(
            "current_project_count >= 0", name="employee_project_count_non_negative"
        ),
    )


class Lead(EngineModel, Base):
    """Sales lead a sequence can be assigned to. Table: lead."""

    __tablename__ = "lead"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    company: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="new")
