"""Progress recompute for workflows.

The only writer of WorkflowInstance.progress. Runs after every task mutation,
re-reading the workflow and its tasks on each attempt and writing with a
compare-and-swap; conflicts and store outages are retried by retry_on_conflict.
"""

from __future__ import annotations

from agency.application.interfaces.repositories import IWorkflowRepository
from agency.application.services.retry import RetryPolicy, retry_on_conflict
from agency.application.services.workflow_state_machine import (
    apply_workflow_transition,
    compute_progress,
    derive_automatic_transition,
)
from agency.domain.entities import WorkflowInstanceEntity
from agency.domain.enums import WorkflowStatus
from agency.domain.exceptions import NotFoundError
from agency.shared.telemetry.logging import get_logger
from agency.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class ProgressTracker:
    """Recomputes progress and applies task-driven workflow transitions."""

    def __init__(self, workflow_repo: IWorkflowRepository, retry_policy: RetryPolicy) -> None:
        self._workflow_repo = workflow_repo
        self._retry_policy = retry_policy

    async def recompute(
        self, workflow_id: str
    ) -> tuple[WorkflowInstanceEntity, WorkflowStatus | None]:
        """Recompute progress for a workflow.

        Returns:
            The stored workflow and the status it was automatically moved to
            (None when the status did not change).

        Raises:
            NotFoundError: Workflow does not exist.
            TransientStoreError: Write kept conflicting or failing.
        """

        async def attempt() -> tuple[WorkflowInstanceEntity, WorkflowStatus | None]:
            workflow = await self._workflow_repo.get_by_id(workflow_id)
            if workflow is None:
                raise NotFoundError("workflow", workflow_id)
            tasks = await self._workflow_repo.get_tasks(workflow_id)
            progress = compute_progress(tasks)
            target = derive_automatic_transition(workflow, tasks)
            if target is None and progress == workflow.progress:
                return workflow, None
            expected_version = workflow.version
            workflow.progress = progress
            if target is not None:
                apply_workflow_transition(workflow, target, utc_now())
                logger.info("Workflow %s moved to %s by task progress", workflow_id, target.value)
            saved = await self._workflow_repo.update_workflow(workflow, expected_version)
            return saved, target

        return await retry_on_conflict(attempt, self._retry_policy, name="progress_recompute")
