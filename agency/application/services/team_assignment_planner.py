"""Team assignment planner.

Binds employees to a workflow's pending tasks, one task at a time in order,
using the skill matcher for ranking and the capacity ledger for
reservations. The run holds the workflow's assignment lock, so two planner
runs on the same workflow cannot interleave; load changes are persisted per
task, so runs on different workflows see each other's reservations.

Selection per task:
  1. candidates = eligible employees ranked by the skill matcher
  2. prefer candidates whose available hours cover the estimate
  3. otherwise overcommit the top-ranked candidate and record a warning
  4. no candidate at all leaves the task pending and records the gap
"""

from __future__ import annotations

from collections import defaultdict

from agency.application.dtos.workflow import AssignmentPlan, TaskAssignment, UnassignedTask
from agency.application.interfaces.repositories import IEmployeeRepository, IWorkflowRepository
from agency.application.services.capacity_ledger import CapacityLedger, is_eligible
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.skill_matcher import rank_candidates
from agency.domain.entities import EmployeeEntity, WorkflowTaskEntity
from agency.domain.enums import TaskStatus, TeamAssignmentStatus, TeamRole
from agency.domain.exceptions import (
    AlreadyAssignedError,
    CapacityExceededError,
    NotFoundError,
    ValidationException,
)
from agency.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Share of a workflow's tasks at which a member is recorded as lead.
LEAD_TASK_SHARE = 0.5


class TeamAssignmentPlanner:
    """Produces and persists one assignment per pending task of a workflow."""

    def __init__(
        self,
        employee_repo: IEmployeeRepository,
        workflow_repo: IWorkflowRepository,
        ledger: CapacityLedger,
        retry_policy: RetryPolicy,
    ) -> None:
        self._employee_repo = employee_repo
        self._workflow_repo = workflow_repo
        self._ledger = ledger
        self._retry_policy = retry_policy

    async def assign_team_to_workflow(
        self,
        workflow_id: str,
        tasks: list[WorkflowTaskEntity] | None = None,
    ) -> AssignmentPlan:
        """Assign employees to the workflow's pending tasks.

        Args:
            workflow_id: Workflow to staff.
            tasks: Optional task list; defaults to the workflow's stored tasks.

        Returns:
            AssignmentPlan with the task -> employee mapping, unassigned tasks,
            overcommit warnings and the resulting team.

        Raises:
            NotFoundError: Workflow does not exist.
            AlreadyAssignedError: The workflow already had a team assigned.
            ValidationException: A supplied task belongs to another workflow.
        """
        async with self._workflow_repo.lock_workflow(workflow_id):
            workflow = await self._workflow_repo.get_by_id(workflow_id)
            if workflow is None:
                raise NotFoundError("workflow", workflow_id)
            if workflow.team_assigned:
                raise AlreadyAssignedError(workflow_id)

            if tasks is None:
                tasks = await self._workflow_repo.get_tasks(workflow_id)
            foreign = [t.id for t in tasks if t.workflow_id != workflow_id]
            if foreign:
                raise ValidationException(
                    f"Tasks do not belong to workflow {workflow_id}: {foreign}", field="tasks"
                )
            ordered = sorted(tasks, key=lambda t: (t.order, t.id))

            plan = AssignmentPlan(workflow_id=workflow_id)
            employees = {e.id: e for e in await self._employee_repo.list_active()}
            open_counts = defaultdict(int, await self._workflow_repo.count_open_tasks_by_assignee())
            team_ids = {
                m.employee_id
                for m in await self._workflow_repo.get_team(workflow_id)
                if m.status == TeamAssignmentStatus.ACTIVE
            }

            for task in ordered:
                if task.status != TaskStatus.PENDING:
                    if task.assigned_to_id:
                        plan.mapping[task.id] = task.assigned_to_id
                    continue
                await self._assign_task(task, employees, open_counts, team_ids, plan)

            await self._finalize_team(workflow_id, ordered, plan)
            await self._mark_team_assigned(workflow_id)

        logger.info(
            "Team assigned for workflow %s: %d assigned, %d unassigned, %d overcommitted",
            workflow_id,
            len(plan.assignments),
            len(plan.unassigned),
            len(plan.warnings),
        )
        return plan

    async def _assign_task(
        self,
        task: WorkflowTaskEntity,
        employees: dict[str, EmployeeEntity],
        open_counts: defaultdict[str, int],
        team_ids: set[str],
        plan: AssignmentPlan,
    ) -> None:
        pool = [
            e for _, e in sorted(employees.items())
            if is_eligible(e, on_team=e.id in team_ids)
        ]
        ranked = rank_candidates(pool, task.required_skills, open_counts)
        if not ranked:
            reason = (
                "no eligible employee has the required skills"
                if task.required_skills and pool
                else "no eligible employee available"
            )
            plan.unassigned.append(UnassignedTask(task_id=task.id, order=task.order, reason=reason))
            logger.warning("Task %s (order %d) left unassigned: %s", task.id, task.order, reason)
            return

        fitting = [c for c in ranked if c.available_hours >= task.estimated_hours]
        choice = fitting[0] if fitting else ranked[0]
        overcommitted = not fitting

        task.status = TaskStatus.ASSIGNED
        task.assigned_to_id = choice.employee.id
        await self._workflow_repo.update_task(task)
        employees[choice.employee.id] = await self._ledger.reserve(
            choice.employee.id, task.workflow_id, task.estimated_hours
        )
        team_ids.add(choice.employee.id)
        open_counts[choice.employee.id] += 1

        plan.mapping[task.id] = choice.employee.id
        plan.assignments.append(
            TaskAssignment(
                task_id=task.id,
                employee_id=choice.employee.id,
                score=choice.score,
                overcommitted=overcommitted,
            )
        )
        if overcommitted:
            warning = CapacityExceededError(
                employee_id=choice.employee.id,
                task_id=task.id,
                required_hours=task.estimated_hours,
                available_hours=choice.available_hours,
            )
            plan.warnings.append(warning)
            logger.warning(warning.message)
        else:
            logger.debug(
                "Task %s (order %d) -> employee %s (score %.2f)",
                task.id,
                task.order,
                choice.employee.id,
                choice.score,
            )

    async def _finalize_team(
        self, workflow_id: str, tasks: list[WorkflowTaskEntity], plan: AssignmentPlan
    ) -> None:
        """Set allocated hours and lead/contributor role on each active member."""
        hours: dict[str, float] = defaultdict(float)
        counts: dict[str, int] = defaultdict(int)
        for task in tasks:
            employee_id = plan.mapping.get(task.id)
            if employee_id:
                hours[employee_id] += task.estimated_hours
                counts[employee_id] += 1
        team = []
        for member in await self._workflow_repo.get_team(workflow_id):
            if member.status == TeamAssignmentStatus.ACTIVE and member.employee_id in counts:
                member.allocated_hours = hours[member.employee_id]
                member.role = (
                    TeamRole.LEAD
                    if counts[member.employee_id] >= len(tasks) * LEAD_TASK_SHARE
                    else TeamRole.CONTRIBUTOR
                )
                member = await self._workflow_repo.save_team_assignment(member)
            team.append(member)
        plan.team = team

    async def _mark_team_assigned(self, workflow_id: str) -> None:
        async def attempt() -> None:
            workflow = await self._workflow_repo.get_by_id(workflow_id)
            if workflow is None:
                raise NotFoundError("workflow", workflow_id)
            expected_version = workflow.version
            workflow.team_assigned = True
            await self._workflow_repo.update_workflow(workflow, expected_version)

        await retry_on_conflict(attempt, self._retry_policy, name="mark_team_assigned")
