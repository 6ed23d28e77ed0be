"""Update workflow status use case (explicit admin transitions and note edits)."""

from __future__ import annotations

from datetime import datetime

from agency.application.interfaces.repositories import IWorkflowRepository
from agency.application.services.capacity_ledger import CapacityLedger
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.workflow_state_machine import (
    apply_workflow_transition,
    check_workflow_transition,
)
from agency.domain.entities import WorkflowInstanceEntity
from agency.domain.enums import WorkflowStatus
from agency.domain.exceptions import NotFoundError
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced
from agency.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)


class UpdateWorkflowStatusUseCase:
    """Moves a workflow along its state machine and updates its notes."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        ledger: CapacityLedger,
        retry_policy: RetryPolicy,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._ledger = ledger
        self._retry_policy = retry_policy

    @traced("workflow.update_status")
    async def execute(
        self,
        workflow_id: str,
        new_status: WorkflowStatus | None = None,
        *,
        internal_notes: str | None = None,
        client_notes: str | None = None,
        expected_completion_date: datetime | None = None,
    ) -> WorkflowInstanceEntity:
        """Apply a status change and/or field updates.

        Cancelling releases every open reservation and closes the team;
        completing closes any remaining team memberships. Runs under the
        workflow lock shared with task updates.

        Raises:
            NotFoundError: Workflow does not exist.
            InvalidTransitionError: Edge not allowed or tasks still open.
            TransientStoreError: Write kept conflicting.
        """

        async def attempt() -> tuple[WorkflowInstanceEntity, WorkflowStatus | None]:
            workflow = await self._workflow_repo.get_by_id(workflow_id)
            if workflow is None:
                raise NotFoundError("workflow", workflow_id)
            expected_version = workflow.version
            now = utc_now()
            moved_to: WorkflowStatus | None = None
            if new_status is not None and new_status != workflow.status:
                tasks = await self._workflow_repo.get_tasks(workflow_id)
                check_workflow_transition(workflow, new_status, tasks)
                apply_workflow_transition(workflow, new_status, now)
                moved_to = new_status
            fields_changed = False
            if internal_notes is not None:
                workflow.internal_notes = internal_notes
                fields_changed = True
            if client_notes is not None:
                workflow.client_notes = client_notes
                fields_changed = True
            if expected_completion_date is not None:
                workflow.expected_completion_date = ensure_utc(expected_completion_date)
                fields_changed = True
            if moved_to is None and not fields_changed:
                return workflow, None
            workflow.updated_at = now
            saved = await self._workflow_repo.update_workflow(workflow, expected_version)
            return saved, moved_to

        async with self._workflow_repo.lock_workflow(workflow_id):
            workflow, moved_to = await retry_on_conflict(
                attempt, self._retry_policy, name="update_workflow_status"
            )
            if moved_to is not None:
                logger.info("Workflow %s moved to %s", workflow_id, moved_to.value)
            if moved_to == WorkflowStatus.CANCELLED:
                await self._ledger.release_workflow(workflow_id)
            elif moved_to == WorkflowStatus.COMPLETED:
                await self._ledger.close_team(workflow_id)
        return workflow
