"""Create workflow instance use case: clone a template's blueprints into tasks."""

from __future__ import annotations

from agency.application.dtos.workflow import WorkflowDetail
from agency.application.interfaces.repositories import (
    IWorkflowRepository,
    IWorkflowTemplateRepository,
)
from agency.domain.entities import WorkflowInstanceEntity, WorkflowTaskEntity
from agency.domain.exceptions import NotFoundError, ValidationException
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import add_span_attributes, traced
from agency.shared.utils.datetime import days_from, utc_now
from agency.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


class CreateWorkflowInstanceUseCase:
    """Creates a pending workflow with one task per template blueprint."""

    def __init__(
        self,
        template_repo: IWorkflowTemplateRepository,
        workflow_repo: IWorkflowRepository,
    ) -> None:
        self._template_repo = template_repo
        self._workflow_repo = workflow_repo

    @traced("workflow.create_instance")
    async def execute(
        self,
        template_id: str,
        user_id: str,
        *,
        service_name: str,
        service_amount: float = 0.0,
        service_tier: str | None = None,
        client_notes: str | None = None,
    ) -> WorkflowDetail:
        """Instantiate a template for a client.

        Args:
            template_id: Template to clone.
            user_id: Owning (client) user.
            service_name: Purchased service label.
            service_amount: Amount paid; must not be negative.
            service_tier: Tier label; defaults to the template's tier.
            client_notes: Optional notes visible to the client.

        Returns:
            WorkflowDetail with the new workflow and its tasks (no team yet).

        Raises:
            NotFoundError: Template does not exist.
            ValidationException: Invalid service fields.
        """
        template = await self._template_repo.get_by_id(template_id)
        if template is None:
            raise NotFoundError("workflow_template", template_id)
        if not service_name.strip():
            raise ValidationException("Service name is required", field="service_name")
        if service_amount < 0:
            raise ValidationException("Service amount cannot be negative", field="service_amount")

        now = utc_now()
        workflow = WorkflowInstanceEntity(
            id=generate_cuid(),
            user_id=user_id,
            template_id=template.id,
            service_name=service_name.strip(),
            service_tier=service_tier or template.service_tier,
            service_amount=service_amount,
            expected_completion_date=days_from(now, template.estimated_duration),
            client_notes=client_notes,
            created_at=now,
            updated_at=now,
        )
        tasks = [
            WorkflowTaskEntity(
                id=generate_cuid(),
                workflow_id=workflow.id,
                title=bp.title,
                description=bp.description,
                order=bp.order,
                estimated_hours=bp.estimated_hours,
                required_skills=bp.required_skills,
                dependencies=bp.dependencies,
                visible_to_client=bp.visible_to_client,
            )
            for bp in sorted(template.tasks, key=lambda b: b.order)
        ]
        created = await self._workflow_repo.create_instance(workflow, tasks)
        add_span_attributes(workflow_id=created.id, task_count=len(tasks))
        logger.info(
            "Created workflow %s from template %s with %d tasks",
            created.id,
            template.name,
            len(tasks),
        )
        return WorkflowDetail(
            workflow=created,
            tasks=tasks,
            team=[],
            milestones=list(template.milestones),
        )
