"""Memory implementations of the repository protocols.

Semantics match the SQL repositories: compare-and-swap on version for
workflows and sequence assignments, atomic floored load adjustments, and
at most one pending/active assignment per (sequence, lead).
"""

from __future__ import annotations

import dataclasses
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from agency.domain.entities import (
    EmployeeEntity,
    LeadEntity,
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    TeamAssignmentEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
    WorkflowTemplateEntity,
)
from agency.domain.enums import (
    EmployeeStatus,
    SequenceAssignmentStatus,
    TeamAssignmentStatus,
    WorkflowStatus,
)
from agency.domain.exceptions import (
    DuplicateActiveAssignmentError,
    NotFoundError,
    VersionConflictError,
)
from agency.infrastructure.memory.store import InMemoryStore, snapshot
from agency.shared.utils.datetime import utc_now


def _newest_first(rows: list, skip: int, limit: int) -> list:
    rows.sort(key=lambda r: (r.created_at is not None, r.created_at, r.id), reverse=True)
    return rows[skip : skip + limit]


class MemoryEmployeeRepository:
    """Implements IEmployeeRepository."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        employee = self._store.employees.get(employee_id)
        return snapshot(employee) if employee else None

    async def get_by_user_id(self, user_id: str) -> EmployeeEntity | None:
        for employee in self._store.employees.values():
            if employee.user_id == user_id:
                return snapshot(employee)
        return None

    async def list_active(self) -> list[EmployeeEntity]:
        return [
            snapshot(e)
            for _, e in sorted(self._store.employees.items())
            if e.status == EmployeeStatus.ACTIVE
        ]

    async def create_employee(self, employee: EmployeeEntity) -> EmployeeEntity:
        async with self._store.lock:
            self._store.employees[employee.id] = snapshot(employee)
        return snapshot(employee)

    async def adjust_load(
        self, employee_id: str, hours_delta: float, project_delta: int = 0
    ) -> EmployeeEntity:
        async with self._store.lock:
            current = self._store.employees.get(employee_id)
            if current is None:
                raise NotFoundError("employee", employee_id)
            updated = dataclasses.replace(
                current,
                current_workload=max(current.current_workload + hours_delta, 0.0),
                current_project_count=max(current.current_project_count + project_delta, 0),
            )
            self._store.employees[employee_id] = updated
            return snapshot(updated)


class MemoryLeadRepository:
    """Implements ILeadRepository."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, lead_id: str) -> LeadEntity | None:
        lead = self._store.leads.get(lead_id)
        return snapshot(lead) if lead else None

    async def get_by_ids(self, lead_ids: list[str]) -> list[LeadEntity]:
        return [snapshot(self._store.leads[i]) for i in lead_ids if i in self._store.leads]

    async def create_lead(self, lead: LeadEntity) -> LeadEntity:
        self._store.leads[lead.id] = snapshot(lead)
        return snapshot(lead)


class MemoryWorkflowTemplateRepository:
    """Implements IWorkflowTemplateRepository. Templates are immutable, so no copies."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, template_id: str) -> WorkflowTemplateEntity | None:
        return self._store.templates.get(template_id)

    async def get_by_name(self, name: str) -> WorkflowTemplateEntity | None:
        for template in self._store.templates.values():
            if template.name == name:
                return template
        return None

    async def create_template(self, template: WorkflowTemplateEntity) -> WorkflowTemplateEntity:
        async with self._store.lock:
            existing = await self.get_by_name(template.name)
            if existing is not None:
                return existing
            self._store.templates[template.id] = template
            return template

    async def list_templates(self) -> list[WorkflowTemplateEntity]:
        return sorted(self._store.templates.values(), key=lambda t: t.name)


class MemoryWorkflowRepository:
    """Implements IWorkflowRepository."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_by_id(self, workflow_id: str) -> WorkflowInstanceEntity | None:
        workflow = self._store.workflows.get(workflow_id)
        return snapshot(workflow) if workflow else None

    async def list_workflows(
        self,
        user_id: str | None = None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowInstanceEntity]:
        rows = [
            snapshot(w)
            for w in self._store.workflows.values()
            if (user_id is None or w.user_id == user_id) and (status is None or w.status == status)
        ]
        return _newest_first(rows, skip, limit)

    async def create_instance(
        self,
        workflow: WorkflowInstanceEntity,
        tasks: list[WorkflowTaskEntity],
    ) -> WorkflowInstanceEntity:
        async with self._store.lock:
            self._store.workflows[workflow.id] = snapshot(workflow)
            for task in tasks:
                self._store.tasks[task.id] = snapshot(task)
        return snapshot(workflow)

    async def update_workflow(
        self, workflow: WorkflowInstanceEntity, expected_version: int
    ) -> WorkflowInstanceEntity:
        async with self._store.lock:
            current = self._store.workflows.get(workflow.id)
            if current is None:
                raise NotFoundError("workflow", workflow.id)
            if current.version != expected_version:
                raise VersionConflictError("workflow", workflow.id, expected_version)
            stored = snapshot(workflow)
            stored.version = expected_version + 1
            stored.updated_at = utc_now()
            self._store.workflows[workflow.id] = stored
            return snapshot(stored)

    @asynccontextmanager
    async def lock_workflow(self, workflow_id: str) -> AsyncIterator[None]:
        async with self._store.workflow_lock(workflow_id):
            yield

    async def get_tasks(self, workflow_id: str) -> list[WorkflowTaskEntity]:
        tasks = [snapshot(t) for t in self._store.tasks.values() if t.workflow_id == workflow_id]
        return sorted(tasks, key=lambda t: (t.order, t.id))

    async def get_task(self, task_id: str) -> WorkflowTaskEntity | None:
        task = self._store.tasks.get(task_id)
        return snapshot(task) if task else None

    async def update_task(self, task: WorkflowTaskEntity) -> WorkflowTaskEntity:
        async with self._store.lock:
            if task.id not in self._store.tasks:
                raise NotFoundError("task", task.id)
            self._store.tasks[task.id] = snapshot(task)
        return snapshot(task)

    async def count_open_tasks_by_assignee(self) -> dict[str, int]:
        cancelled = {
            w.id for w in self._store.workflows.values() if w.status == WorkflowStatus.CANCELLED
        }
        return dict(
            Counter(
                t.assigned_to_id
                for t in self._store.tasks.values()
                if t.holds_capacity and t.workflow_id not in cancelled
            )
        )

    async def get_team(self, workflow_id: str) -> list[TeamAssignmentEntity]:
        members = [snapshot(m) for m in self._store.team.values() if m.workflow_id == workflow_id]
        return sorted(members, key=lambda m: m.employee_id)

    async def get_team_assignment(
        self, workflow_id: str, employee_id: str
    ) -> TeamAssignmentEntity | None:
        for member in self._store.team.values():
            if member.workflow_id == workflow_id and member.employee_id == employee_id:
                return snapshot(member)
        return None

    async def save_team_assignment(
        self, assignment: TeamAssignmentEntity
    ) -> TeamAssignmentEntity:
        async with self._store.lock:
            self._store.team[assignment.id] = snapshot(assignment)
        return snapshot(assignment)

    async def list_active_team_assignments(
        self, employee_id: str
    ) -> list[TeamAssignmentEntity]:
        members = [
            snapshot(m)
            for m in self._store.team.values()
            if m.employee_id == employee_id and m.status == TeamAssignmentStatus.ACTIVE
        ]
        return sorted(members, key=lambda m: m.workflow_id)


class MemorySequenceRepository:
    """Implements ISequenceRepository."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_sequence(self, sequence_id: str) -> SequenceEntity | None:
        sequence = self._store.sequences.get(sequence_id)
        return snapshot(sequence) if sequence else None

    async def create_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        async with self._store.lock:
            self._store.sequences[sequence.id] = snapshot(sequence)
        return snapshot(sequence)

    async def update_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        async with self._store.lock:
            current = self._store.sequences.get(sequence.id)
            if current is None:
                raise NotFoundError("sequence", sequence.id)
            stored = snapshot(sequence)
            # times_used is only changed by increment_times_used
            stored.times_used = current.times_used
            stored.updated_at = utc_now()
            self._store.sequences[sequence.id] = stored
            return snapshot(stored)

    async def increment_times_used(self, sequence_id: str, count: int) -> None:
        async with self._store.lock:
            sequence = self._store.sequences.get(sequence_id)
            if sequence is not None:
                sequence.times_used += count

    async def get_assignment(self, assignment_id: str) -> SequenceAssignmentEntity | None:
        assignment = self._store.assignments.get(assignment_id)
        return snapshot(assignment) if assignment else None

    def _open_assignment(self, sequence_id: str, lead_id: str) -> SequenceAssignmentEntity | None:
        open_statuses = SequenceAssignmentStatus.non_terminal()
        for a in self._store.assignments.values():
            if a.sequence_id == sequence_id and a.lead_id == lead_id and a.status in open_statuses:
                return a
        return None

    async def find_open_assignment(
        self, sequence_id: str, lead_id: str
    ) -> SequenceAssignmentEntity | None:
        existing = self._open_assignment(sequence_id, lead_id)
        return snapshot(existing) if existing else None

    async def create_assignment(
        self, assignment: SequenceAssignmentEntity
    ) -> SequenceAssignmentEntity:
        async with self._store.lock:
            if assignment.status in SequenceAssignmentStatus.non_terminal():
                existing = self._open_assignment(assignment.sequence_id, assignment.lead_id)
                if existing is not None:
                    raise DuplicateActiveAssignmentError(
                        assignment.sequence_id, assignment.lead_id, existing.id
                    )
            self._store.assignments[assignment.id] = snapshot(assignment)
        return snapshot(assignment)

    async def update_assignment(
        self, assignment: SequenceAssignmentEntity, expected_version: int
    ) -> SequenceAssignmentEntity:
        async with self._store.lock:
            current = self._store.assignments.get(assignment.id)
            if current is None:
                raise NotFoundError("sequence_assignment", assignment.id)
            if current.version != expected_version:
                raise VersionConflictError("sequence_assignment", assignment.id, expected_version)
            if assignment.status in SequenceAssignmentStatus.non_terminal():
                other = self._open_assignment(assignment.sequence_id, assignment.lead_id)
                if other is not None and other.id != assignment.id:
                    raise DuplicateActiveAssignmentError(
                        assignment.sequence_id, assignment.lead_id, other.id
                    )
            stored = snapshot(assignment)
            stored.version = expected_version + 1
            stored.updated_at = utc_now()
            self._store.assignments[assignment.id] = stored
            return snapshot(stored)

    async def list_assignments(
        self,
        sequence_id: str | None = None,
        lead_id: str | None = None,
        status: SequenceAssignmentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[SequenceAssignmentEntity]:
        rows = [
            snapshot(a)
            for a in self._store.assignments.values()
            if (sequence_id is None or a.sequence_id == sequence_id)
            and (lead_id is None or a.lead_id == lead_id)
            and (status is None or a.status == status)
        ]
        return _newest_first(rows, skip, limit)

    async def add_activity(self, activity: SequenceActivityEntity) -> SequenceActivityEntity:
        stored = snapshot(activity)
        if stored.timestamp is None:
            stored.timestamp = utc_now()
        self._store.activities.append(stored)
        return snapshot(stored)

    async def list_activities(self, assignment_id: str) -> list[SequenceActivityEntity]:
        return [snapshot(a) for a in self._store.activities if a.assignment_id == assignment_id]
