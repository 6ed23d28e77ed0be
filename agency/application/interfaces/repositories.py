"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
Both the Postgres and the in-memory backends implement every protocol here.
All types reference domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
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
    from agency.domain.enums import SequenceAssignmentStatus, WorkflowStatus


# Employee repository interface
class IEmployeeRepository(Protocol):
    """Protocol for employee repository (DIP)."""

    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        """Return employee by ID."""

    async def get_by_user_id(self, user_id: str) -> EmployeeEntity | None:
        """Return the employee record linked to a platform user."""

    async def list_active(self) -> list[EmployeeEntity]:
        """Return employees with status active, ordered by id."""

    async def create_employee(self, employee: EmployeeEntity) -> EmployeeEntity:
        """Persist a new employee."""

    async def adjust_load(
        self, employee_id: str, hours_delta: float, project_delta: int = 0
    ) -> EmployeeEntity:
        """Atomically add deltas to current_workload / current_project_count.

        Both counters are floored at zero. Returns the updated employee.
        Raises NotFoundError if the employee does not exist.
        """


# Workflow template repository interface
class IWorkflowTemplateRepository(Protocol):
    """Protocol for workflow template repository (DIP)."""

    async def get_by_id(self, template_id: str) -> WorkflowTemplateEntity | None:
        """Return template by ID."""

    async def get_by_name(self, name: str) -> WorkflowTemplateEntity | None:
        """Return template by unique name (e.g. 'seo-growth')."""

    async def create_template(self, template: WorkflowTemplateEntity) -> WorkflowTemplateEntity:
        """Persist a template. If the name already exists, return the stored one."""

    async def list_templates(self) -> list[WorkflowTemplateEntity]:
        """Return all stored templates ordered by name."""


# Workflow instance repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow instance, task, and team assignment storage (DIP)."""

    async def get_by_id(self, workflow_id: str) -> WorkflowInstanceEntity | None:
        """Return the latest committed state of a workflow."""

    async def list_workflows(
        self,
        user_id: str | None = None,
        status: WorkflowStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowInstanceEntity]:
        """Return workflows, newest first, optionally filtered."""

    async def create_instance(
        self,
        workflow: WorkflowInstanceEntity,
        tasks: list[WorkflowTaskEntity],
    ) -> WorkflowInstanceEntity:
        """Persist a workflow together with its tasks."""

    async def update_workflow(
        self, workflow: WorkflowInstanceEntity, expected_version: int
    ) -> WorkflowInstanceEntity:
        """Compare-and-swap write of a workflow.

        Succeeds only when the stored version equals expected_version; the
        stored version is then incremented. Raises VersionConflictError
        otherwise.
        """

    def lock_workflow(self, workflow_id: str) -> AbstractAsyncContextManager[None]:
        """Return a context manager giving exclusive access to a workflow.

        Held by the planner, task updates and workflow status changes so that
        capacity is reserved and released against a stable workflow status.
        Postgres keeps the row lock until the transaction ends.
        """

    async def get_tasks(self, workflow_id: str) -> list[WorkflowTaskEntity]:
        """Return tasks of a workflow ordered by (order, id)."""

    async def get_task(self, task_id: str) -> WorkflowTaskEntity | None:
        """Return task by ID."""

    async def update_task(self, task: WorkflowTaskEntity) -> WorkflowTaskEntity:
        """Persist all mutable task fields."""

    async def count_open_tasks_by_assignee(self) -> dict[str, int]:
        """Return assignee id -> number of assigned/in_progress/blocked tasks.

        Tasks of cancelled workflows are not counted.
        """

    async def get_team(self, workflow_id: str) -> list[TeamAssignmentEntity]:
        """Return team assignments of a workflow ordered by employee id."""

    async def get_team_assignment(
        self, workflow_id: str, employee_id: str
    ) -> TeamAssignmentEntity | None:
        """Return the team assignment for (workflow, employee), if any."""

    async def save_team_assignment(
        self, assignment: TeamAssignmentEntity
    ) -> TeamAssignmentEntity:
        """Insert or update a team assignment."""

    async def list_active_team_assignments(
        self, employee_id: str
    ) -> list[TeamAssignmentEntity]:
        """Return an employee's active team assignments."""


# Sequence repository interface
class ISequenceRepository(Protocol):
    """Protocol for sequences, their assignments and activity log (DIP)."""

    async def get_sequence(self, sequence_id: str) -> SequenceEntity | None:
        """Return sequence (with steps) by ID."""

    async def create_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        """Persist a new sequence and its steps."""

    async def update_sequence(self, sequence: SequenceEntity) -> SequenceEntity:
        """Persist sequence status and approval metadata."""

    async def increment_times_used(self, sequence_id: str, count: int) -> None:
        """Atomically add count to the sequence's times_used."""

    async def get_assignment(self, assignment_id: str) -> SequenceAssignmentEntity | None:
        """Return the latest committed state of an assignment."""

    async def find_open_assignment(
        self, sequence_id: str, lead_id: str
    ) -> SequenceAssignmentEntity | None:
        """Return the pending/active assignment for the pair, if any."""

    async def create_assignment(
        self, assignment: SequenceAssignmentEntity
    ) -> SequenceAssignmentEntity:
        """Insert an assignment.

        Raises DuplicateActiveAssignmentError when a pending/active assignment
        for the same (sequence, lead) already exists.
        """

    async def update_assignment(
        self, assignment: SequenceAssignmentEntity, expected_version: int
    ) -> SequenceAssignmentEntity:
        """Compare-and-swap write; raises VersionConflictError on mismatch."""

    async def list_assignments(
        self,
        sequence_id: str | None = None,
        lead_id: str | None = None,
        status: SequenceAssignmentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[SequenceAssignmentEntity]:
        """Return assignments, newest first, optionally filtered."""

    async def add_activity(self, activity: SequenceActivityEntity) -> SequenceActivityEntity:
        """Append an activity record."""

    async def list_activities(self, assignment_id: str) -> list[SequenceActivityEntity]:
        """Return activities of an assignment, oldest first."""


# Lead repository interface
class ILeadRepository(Protocol):
    """Protocol for lead lookups (DIP)."""

    async def get_by_id(self, lead_id: str) -> LeadEntity | None:
        """Return lead by ID."""

    async def get_by_ids(self, lead_ids: list[str]) -> list[LeadEntity]:
        """Return the leads that exist among lead_ids."""

    async def create_lead(self, lead: LeadEntity) -> LeadEntity:
        """Persist a new lead."""
