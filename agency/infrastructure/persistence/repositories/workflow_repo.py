"""Workflow instance, task and team assignment repository (SQLAlchemy).

Workflow rows are written with compare-and-swap on version. The planner
lock is a row lock (SELECT ... FOR UPDATE) held until the surrounding
request transaction ends.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import func, select, update

from agency.domain.entities import (
    TeamAssignmentEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
)
from agency.domain.enums import TaskStatus, TeamAssignmentStatus, TeamRole, WorkflowStatus
from agency.domain.exceptions import NotFoundError, VersionConflictError
from agency.infrastructure.persistence.models.workflow import (
    TeamAssignment,
    WorkflowInstance,
    WorkflowTask,
)
from agency.infrastructure.persistence.repositories.base import (
    SqlRepository,
    translate_store_errors,
)

_OPEN_TASK_STATUSES = [s.value for s in TaskStatus.open_statuses()]


def _workflow_to_entity(w: WorkflowInstance) -> WorkflowInstanceEntity:
    """Map WorkflowInstance ORM to WorkflowInstanceEntity."""
    return WorkflowInstanceEntity(
        id=w.id,
        user_id=w.user_id,
        template_id=w.template_id,
        service_name=w.service_name,
        service_tier=w.service_tier,
        service_amount=w.service_amount,
        status=WorkflowStatus(w.status),
        progress=w.progress,
        team_assigned=w.team_assigned,
        started_at=w.started_at,
        completed_at=w.completed_at,
        expected_completion_date=w.expected_completion_date,
        internal_notes=w.internal_notes,
        client_notes=w.client_notes,
        version=w.version,
        created_at=w.created_at,
        updated_at=w.updated_at,
    )


def _task_to_entity(t: WorkflowTask) -> WorkflowTaskEntity:
    """Map WorkflowTask ORM to WorkflowTaskEntity."""
    return WorkflowTaskEntity(
        id=t.id,
        workflow_id=t.workflow_id,
        title=t.title,
        order=t.order,
        estimated_hours=t.estimated_hours,
        description=t.description,
        actual_hours=t.actual_hours,
        required_skills=frozenset(t.required_skills or ()),
        dependencies=frozenset(int(d) for d in (t.dependencies or ())),
        status=TaskStatus(t.status),
        assigned_to_id=t.assigned_to_id,
        blocked_reason=t.blocked_reason,
        completed_work=t.completed_work,
        started_at=t.started_at,
        completed_at=t.completed_at,
        visible_to_client=t.visible_to_client,
    )


def _team_to_entity(m: TeamAssignment) -> TeamAssignmentEntity:
    return TeamAssignmentEntity(
        id=m.id,
        workflow_id=m.workflow_id,
        employee_id=m.employee_id,
        status=TeamAssignmentStatus(m.status),
        role=TeamRole(m.role),
        allocated_hours=m.allocated_hours,
        assigned_at=m.assigned_at,
        completed_at=m.completed_at,
    )


def _task_values(task: WorkflowTaskEntity) -> dict:
    """Mutable task columns as written by update_task."""
    return {
        "status": task.status.value,
        "assigned_to_id": task.assigned_to_id,
        "actual_hours": task.actual_hours,
        "blocked_reason": task.blocked_reason,
        "completed_work": task.completed_work,
        "started_at": task.started_at,
        "completed_at": task.completed_at,
    }


class WorkflowRepository(SqlRepository):
    """Workflow repository. Implements IWorkflowRepository."""

    @translate_store_errors
    async def get_by_id(self, workflow_id: str) -> WorkflowInstanceEntity | None:
        row = await self._scalar_one_or_none(
            select(WorkflowInstance).where(WorkflowInstance.id == workflow_id)
        )
        return _workflow_to_entity(row) if row else None

    async def list_workflows(
        self,
        user_id: str | None = None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowInstanceEntity]:
        q = select(WorkflowInstance)
        if user_id is not None:
            q = q.where(WorkflowInstance.user_id == user_id)
        if status is not None:
            q = q.where(WorkflowInstance.status == status.value)
        q = q.order_by(WorkflowInstance.created_at.desc(), WorkflowInstance.id.desc())
        rows = await self._scalars(q.offset(skip).limit(limit))
        return [_workflow_to_entity(r) for r in rows]

    async def create_instance(
        self,
        workflow: WorkflowInstanceEntity,
        tasks: list[WorkflowTaskEntity],
    ) -> WorkflowInstanceEntity:
        row = WorkflowInstance(
            id=workflow.id,
            user_id=workflow.user_id,
            template_id=workflow.template_id,
            service_name=workflow.service_name,
            service_tier=workflow.service_tier,
            service_amount=workflow.service_amount,
            status=workflow.status.value,
            progress=workflow.progress,
            team_assigned=workflow.team_assigned,
            started_at=workflow.started_at,
            completed_at=workflow.completed_at,
            expected_completion_date=workflow.expected_completion_date,
            internal_notes=workflow.internal_notes,
            client_notes=workflow.client_notes,
            version=workflow.version,
        )
        self.db.add(row)
        # Parent row first so task FKs resolve
        await self.db.flush()
        self.db.add_all(
            WorkflowTask(
                id=t.id,
                workflow_id=row.id,
                title=t.title,
                description=t.description,
                order=t.order,
                estimated_hours=t.estimated_hours,
                required_skills=sorted(t.required_skills),
                dependencies=sorted(t.dependencies),
                visible_to_client=t.visible_to_client,
                **_task_values(t),
            )
            for t in tasks
        )
        await self.db.flush()
        await self.db.refresh(row)
        return _workflow_to_entity(row)

    @translate_store_errors
    async def update_workflow(
        self, workflow: WorkflowInstanceEntity, expected_version: int
    ) -> WorkflowInstanceEntity:
        result = await self.db.execute(
            update(WorkflowInstance)
            .where(
                WorkflowInstance.id == workflow.id,
                WorkflowInstance.version == expected_version,
            )
            .values(
                status=workflow.status.value,
                progress=workflow.progress,
                team_assigned=workflow.team_assigned,
                started_at=workflow.started_at,
                completed_at=workflow.completed_at,
                expected_completion_date=workflow.expected_completion_date,
                internal_notes=workflow.internal_notes,
                client_notes=workflow.client_notes,
                version=expected_version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if await self.get_by_id(workflow.id) is None:
                raise NotFoundError("workflow", workflow.id)
            raise VersionConflictError("workflow", workflow.id, expected_version)
        saved = await self.get_by_id(workflow.id)
        if saved is None:
            raise NotFoundError("workflow", workflow.id)
        return saved

    @asynccontextmanager
    async def lock_workflow(self, workflow_id: str) -> AsyncIterator[None]:
        await self.db.execute(
            select(WorkflowInstance.id)
            .where(WorkflowInstance.id == workflow_id)
            .with_for_update()
        )
        yield

    @translate_store_errors
    async def get_tasks(self, workflow_id: str) -> list[WorkflowTaskEntity]:
        rows = await self._scalars(
            select(WorkflowTask)
            .where(WorkflowTask.workflow_id == workflow_id)
            .order_by(WorkflowTask.order.asc(), WorkflowTask.id.asc())
        )
        return [_task_to_entity(r) for r in rows]

    async def get_task(self, task_id: str) -> WorkflowTaskEntity | None:
        row = await self._scalar_one_or_none(select(WorkflowTask).where(WorkflowTask.id == task_id))
        return _task_to_entity(row) if row else None

    async def update_task(self, task: WorkflowTaskEntity) -> WorkflowTaskEntity:
        result = await self.db.execute(
            update(WorkflowTask)
            .where(WorkflowTask.id == task.id)
            .values(**_task_values(task), updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("task", task.id)
        saved = await self.get_task(task.id)
        if saved is None:
            raise NotFoundError("task", task.id)
        return saved

    async def count_open_tasks_by_assignee(self) -> dict[str, int]:
        result = await self.db.execute(
            select(WorkflowTask.assigned_to_id, func.count(WorkflowTask.id))
            .join(WorkflowInstance, WorkflowInstance.id == WorkflowTask.workflow_id)
            .where(
                WorkflowTask.assigned_to_id.is_not(None),
                WorkflowTask.status.in_(_OPEN_TASK_STATUSES),
                # Cancelled workflows keep task statuses but hold no capacity.
                WorkflowInstance.status != WorkflowStatus.CANCELLED.value,
            )
            .group_by(WorkflowTask.assigned_to_id)
        )
        return {employee_id: count for employee_id, count in result.all()}

    async def get_team(self, workflow_id: str) -> list[TeamAssignmentEntity]:
        rows = await self._scalars(
            select(TeamAssignment)
            .where(TeamAssignment.workflow_id == workflow_id)
            .order_by(TeamAssignment.employee_id.asc())
        )
        return [_team_to_entity(r) for r in rows]

    async def get_team_assignment(
        self, workflow_id: str, employee_id: str
    ) -> TeamAssignmentEntity | None:
        row = await self._scalar_one_or_none(
            select(TeamAssignment).where(
                TeamAssignment.workflow_id == workflow_id,
                TeamAssignment.employee_id == employee_id,
            )
        )
        return _team_to_entity(row) if row else None

    async def save_team_assignment(
        self, assignment: TeamAssignmentEntity
    ) -> TeamAssignmentEntity:
        row = await self.db.get(TeamAssignment, assignment.id)
        if row is None:
            row = TeamAssignment(
                id=assignment.id,
                workflow_id=assignment.workflow_id,
                employee_id=assignment.employee_id,
            )
            self.db.add(row)
        row.status = assignment.status.value
        row.role = assignment.role.value
        row.allocated_hours = assignment.allocated_hours
        row.assigned_at = assignment.assigned_at
        row.completed_at = assignment.completed_at
        await self.db.flush()
        return _team_to_entity(row)

    async def list_active_team_assignments(
        self, employee_id: str
    ) -> list[TeamAssignmentEntity]:
        rows = await self._scalars(
            select(TeamAssignment)
            .where(
                TeamAssignment.employee_id == employee_id,
                TeamAssignment.status == TeamAssignmentStatus.ACTIVE.value,
            )
            .order_by(TeamAssignment.workflow_id.asc())
        )
        return [_team_to_entity(r) for r in rows]
