"""Capacity ledger: employee hour budgets, project slots, reservations and releases.

The pure helpers (available_hours, has_project_slot, is_eligible,
workload_summary) read employee records. CapacityLedger performs the
reservation/release side effects; every change is written immediately through
IEmployeeRepository.adjust_load, an atomic increment floored at zero, so
concurrent planner runs observe up-to-date load.
"""

from __future__ import annotations

from collections import defaultdict

from agency.application.dtos.team import EmployeeWorkload
from agency.application.interfaces.repositories import IEmployeeRepository, IWorkflowRepository
from agency.domain.entities import EmployeeEntity, TeamAssignmentEntity
from agency.domain.enums import EmployeeStatus, TeamAssignmentStatus
from agency.shared.telemetry.logging import get_logger
from agency.shared.utils.datetime import utc_now
from agency.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


def available_hours(employee: EmployeeEntity) -> float:
    """Weekly capacity minus current workload (negative when overcommitted)."""
    return employee.weekly_capacity - employee.current_workload


def has_project_slot(employee: EmployeeEntity) -> bool:
    return employee.current_project_count < employee.max_concurrent_projects


def is_eligible(employee: EmployeeEntity, *, on_team: bool = False) -> bool:
    """Return whether the employee can take new work.

    An employee already on the workflow's team does not need a free project
    slot for more tasks on that workflow.
    """
    if not employee.available_for_work or employee.status != EmployeeStatus.ACTIVE:
        return False
    return on_team or has_project_slot(employee)


def utilization_rate(employee: EmployeeEntity) -> int:
    """Current workload as a rounded percentage of weekly capacity."""
    if employee.weekly_capacity <= 0:
        return 0
    return int(employee.current_workload * 100 / employee.weekly_capacity + 0.5)


def availability_label(employee: EmployeeEntity) -> str:
    if not employee.available_for_work or employee.status != EmployeeStatus.ACTIVE:
        return "unavailable"
    rate = utilization_rate(employee)
    if rate >= 100 or not has_project_slot(employee):
        return "at_capacity"
    if rate >= 80:
        return "limited"
    return "available"


def workload_summary(
    employee: EmployeeEntity, open_task_count: int, active_assignment_count: int
) -> EmployeeWorkload:
    """Build the workload report row for one employee."""
    return EmployeeWorkload(
        employee_id=employee.id,
        name=employee.name,
        employee_role=employee.employee_role.value,
        department=employee.department.value,
        weekly_capacity=employee.weekly_capacity,
        current_workload=employee.current_workload,
        available_hours=available_hours(employee),
        utilization_rate=utilization_rate(employee),
        current_project_count=employee.current_project_count,
        max_concurrent_projects=employee.max_concurrent_projects,
        open_task_count=open_task_count,
        active_assignment_count=active_assignment_count,
        availability=availability_label(employee),
    )


class CapacityLedger:
    """Reserves and releases employee capacity against workflows."""

    def __init__(
        self,
        employee_repo: IEmployeeRepository,
        workflow_repo: IWorkflowRepository,
    ) -> None:
        self._employee_repo = employee_repo
        self._workflow_repo = workflow_repo

    async def reserve(self, employee_id: str, workflow_id: str, hours: float) -> EmployeeEntity:
        """Reserve hours for a task; consume a project slot on first work in the workflow.

        Creates (or reactivates) the employee's TeamAssignment on the workflow.
        """
        membership = await self._workflow_repo.get_team_assignment(workflow_id, employee_id)
        joins_workflow = membership is None or membership.status != TeamAssignmentStatus.ACTIVE
        employee = await self._employee_repo.adjust_load(
            employee_id, hours, 1 if joins_workflow else 0
        )
        if membership is None:
            membership = TeamAssignmentEntity(
                id=generate_cuid(),
                workflow_id=workflow_id,
                employee_id=employee_id,
                assigned_at=utc_now(),
            )
            await self._workflow_repo.save_team_assignment(membership)
        elif joins_workflow:
            membership.status = TeamAssignmentStatus.ACTIVE
            membership.completed_at = None
            await self._workflow_repo.save_team_assignment(membership)
        logger.debug(
            "Reserved %.1fh for employee %s on workflow %s (workload now %.1f/%.1f)",
            hours,
            employee_id,
            workflow_id,
            employee.current_workload,
            employee.weekly_capacity,
        )
        return employee

    async def release(self, employee_id: str, workflow_id: str, hours: float) -> EmployeeEntity:
        """Release a task's hours.

        Call after the task has been persisted in its new (non-holding) state.
        When the employee holds no other open task on the workflow, their
        TeamAssignment completes and the project slot is returned.
        """
        tasks = await self._workflow_repo.get_tasks(workflow_id)
        still_holding = any(
            t.assigned_to_id == employee_id and t.holds_capacity for t in tasks
        )
        project_delta = 0
        if not still_holding:
            project_delta = -1 if await self._complete_membership(workflow_id, employee_id) else 0
        employee = await self._employee_repo.adjust_load(employee_id, -hours, project_delta)
        logger.debug(
            "Released %.1fh for employee %s on workflow %s", hours, employee_id, workflow_id
        )
        return employee

    async def release_workflow(self, workflow_id: str) -> None:
        """Release every open reservation on a workflow and close its team.

        Used when a workflow is cancelled; task statuses are left as they were.
        """
        held: dict[str, float] = defaultdict(float)
        for task in await self._workflow_repo.get_tasks(workflow_id):
            if task.holds_capacity and task.assigned_to_id:
                held[task.assigned_to_id] += task.estimated_hours
        closed = set(await self.close_team(workflow_id, adjust_projects=False))
        for employee_id in sorted(held.keys() | closed):
            await self._employee_repo.adjust_load(
                employee_id, -held.get(employee_id, 0.0), -1 if employee_id in closed else 0
            )
        logger.info(
            "Released capacity of %d employees on workflow %s", len(held), workflow_id
        )

    async def close_team(self, workflow_id: str, *, adjust_projects: bool = True) -> list[str]:
        """Complete all active team assignments of a workflow.

        Returns the ids of employees whose membership was closed.
        """
        closed: list[str] = []
        for membership in await self._workflow_repo.get_team(workflow_id):
            if membership.status != TeamAssignmentStatus.ACTIVE:
                continue
            await self._complete_membership(workflow_id, membership.employee_id, membership)
            closed.append(membership.employee_id)
            if adjust_projects:
                await self._employee_repo.adjust_load(membership.employee_id, 0.0, -1)
        return closed

    async def _complete_membership(
        self,
        workflow_id: str,
        employee_id: str,
        membership: TeamAssignmentEntity | None = None,
    ) -> bool:
        if membership is None:
            membership = await self._workflow_repo.get_team_assignment(workflow_id, employee_id)
        if membership is None or membership.status != TeamAssignmentStatus.ACTIVE:
            return False
        membership.status = TeamAssignmentStatus.COMPLETED
        membership.completed_at = utc_now()
        await self._workflow_repo.save_team_assignment(membership)
        return True
