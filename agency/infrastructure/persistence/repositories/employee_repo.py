"""Employee and lead repositories (SQLAlchemy)."""

from __future__ import annotations

from sqlalchemy import func, select, update

from agency.domain.entities import EmployeeEntity, LeadEntity
from agency.domain.enums import Department, EmployeeRole, EmployeeStatus
from agency.domain.exceptions import NotFoundError
from agency.infrastructure.persistence.models.employee import Employee, Lead
from agency.infrastructure.persistence.repositories.base import (
    SqlRepository,
    translate_store_errors,
)


def _employee_to_entity(e: Employee) -> EmployeeEntity:
    """Map Employee ORM to EmployeeEntity."""
    return EmployeeEntity(
        id=e.id,
        user_id=e.user_id,
        employee_role=EmployeeRole(e.employee_role),
        department=Department(e.department),
        weekly_capacity=e.weekly_capacity,
        current_workload=e.current_workload,
        current_project_count=e.current_project_count,
        max_concurrent_projects=e.max_concurrent_projects,
        available_for_work=e.available_for_work,
        skill_set=frozenset(e.skill_set or ()),
        status=EmployeeStatus(e.status),
        name=e.name,
        capability_overrides=dict(e.capability_overrides or {}),
    )


def _lead_to_entity(lead: Lead) -> LeadEntity:
    return LeadEntity(
        id=lead.id, name=lead.name, email=lead.email, company=lead.company, status=lead.status
    )


class EmployeeRepository(SqlRepository):
    """Employee repository. Implements IEmployeeRepository."""

    @translate_store_errors
    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        row = await self._scalar_one_or_none(select(Employee).where(Employee.id == employee_id))
        return _employee_to_entity(row) if row else None

    @translate_store_errors
    async def get_by_user_id(self, user_id: str) -> EmployeeEntity | None:
        row = await self._scalar_one_or_none(select(Employee).where(Employee.user_id == user_id))
        return _employee_to_entity(row) if row else None

    @translate_store_errors
    async def list_active(self) -> list[EmployeeEntity]:
        rows = await self._scalars(
            select(Employee)
            .where(Employee.status == EmployeeStatus.ACTIVE.value)
            .order_by(Employee.id.asc())
        )
        return [_employee_to_entity(r) for r in rows]

    async def create_employee(self, employee: EmployeeEntity) -> EmployeeEntity:
        row = Employee(
            id=employee.id,
            user_id=employee.user_id,
            name=employee.name,
            employee_role=employee.employee_role.value,
            department=employee.department.value,
            weekly_capacity=employee.weekly_capacity,
            current_workload=employee.current_workload,
            current_project_count=employee.current_project_count,
            max_concurrent_projects=employee.max_concurrent_projects,
            available_for_work=employee.available_for_work,
            skill_set=sorted(employee.skill_set),
            status=employee.status.value,
            capability_overrides=dict(employee.capability_overrides),
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _employee_to_entity(row)

    @translate_store_errors
    async def adjust_load(
        self, employee_id: str, hours_delta: float, project_delta: int = 0
    ) -> EmployeeEntity:
        """Single UPDATE with GREATEST(..., 0) so concurrent adjustments never lose writes."""
        result = await self.db.execute(
            update(Employee)
            .where(Employee.id == employee_id)
            .values(
                current_workload=func.greatest(Employee.current_workload + hours_delta, 0.0),
                current_project_count=func.greatest(
                    Employee.current_project_count + project_delta, 0
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("employee", employee_id)
        employee = await self.get_by_id(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)
        return employee


class LeadRepository(SqlRepository):
    """Lead repository. Implements ILeadRepository."""

    async def get_by_id(self, lead_id: str) -> LeadEntity | None:
        row = await self._scalar_one_or_none(select(Lead).where(Lead.id == lead_id))
        return _lead_to_entity(row) if row else None

    async def get_by_ids(self, lead_ids: list[str]) -> list[LeadEntity]:
        if not lead_ids:
            return []
        rows = await self._scalars(select(Lead).where(Lead.id.in_(lead_ids)))
        return [_lead_to_entity(r) for r in rows]

    async def create_lead(self, lead: LeadEntity) -> LeadEntity:
        row = Lead(
            id=lead.id, name=lead.name, email=lead.email, company=lead.company, status=lead.status
        )
        self.db.add(row)
        await self.db.flush()
        return _lead_to_entity(row)
