"""Read-side workflow use cases: detail (with milestones), list, team workload."""

from __future__ import annotations

from agency.application.dtos.team import EmployeeWorkload
from agency.application.dtos.workflow import WorkflowDetail
from agency.application.interfaces.repositories import (
    IEmployeeRepository,
    IWorkflowRepository,
    IWorkflowTemplateRepository,
)
from agency.application.services.capacity_ledger import workload_summary
from agency.domain.entities import Milestone, WorkflowInstanceEntity, WorkflowTaskEntity
from agency.domain.enums import TaskStatus, WorkflowStatus
from agency.domain.exceptions import NotFoundError


def reached_milestones(milestones: list[Milestone], tasks: list[WorkflowTaskEntity]) -> list[str]:
    """Names of milestones whose tasks are all completed, in milestone order."""
    completed = {t.order for t in tasks if t.status == TaskStatus.COMPLETED}
    return [
        m.name
        for m in sorted(milestones, key=lambda m: m.order)
        if m.task_orders and set(m.task_orders) <= completed
    ]


class GetWorkflowUseCase:
    """Workflow detail and listing."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        template_repo: IWorkflowTemplateRepository,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._template_repo = template_repo

    async def execute(self, workflow_id: str) -> WorkflowDetail:
        workflow = await self._workflow_repo.get_by_id(workflow_id)
        if workflow is None:
            raise NotFoundError("workflow", workflow_id)
        tasks = await self._workflow_repo.get_tasks(workflow_id)
        team = await self._workflow_repo.get_team(workflow_id)
        milestones: list[Milestone] = []
        if workflow.template_id:
            template = await self._template_repo.get_by_id(workflow.template_id)
            if template is not None:
                milestones = list(template.milestones)
        return WorkflowDetail(
            workflow=workflow,
            tasks=tasks,
            team=team,
            milestones=milestones,
            milestones_reached=reached_milestones(milestones, tasks),
        )

    async def list_workflows(
        self,
        user_id: str | None = None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowInstanceEntity]:
        return await self._workflow_repo.list_workflows(
            user_id=user_id, status=status, skip=skip, limit=limit
        )


class GetTeamWorkloadUseCase:
    """Capacity report for active employees (or one employee)."""

    def __init__(
        self,
        employee_repo: IEmployeeRepository,
        workflow_repo: IWorkflowRepository,
    ) -> None:
        self._employee_repo = employee_repo
        self._workflow_repo = workflow_repo

    async def execute(self, employee_id: str | None = None) -> list[EmployeeWorkload]:
        if employee_id is not None:
            employee = await self._employee_repo.get_by_id(employee_id)
            if employee is None:
                raise NotFoundError("employee", employee_id)
            employees = [employee]
        else:
            employees = await self._employee_repo.list_active()
        open_counts = await self._workflow_repo.count_open_tasks_by_assignee()
        rows = []
        for employee in employees:
            memberships = await self._workflow_repo.list_active_team_assignments(employee.id)
            rows.append(
                workload_summary(employee, open_counts.get(employee.id, 0), len(memberships))
            )
        return rows
