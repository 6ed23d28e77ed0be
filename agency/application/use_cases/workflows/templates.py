"""Workflow template use cases: lazy creation from the built-in catalog and listing."""

from __future__ import annotations

from agency.application.interfaces.repositories import IWorkflowTemplateRepository
from agency.application.interfaces.services import ITemplateCatalog
from agency.domain.entities import WorkflowTemplateEntity
from agency.domain.exceptions import NotFoundError
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced

logger = get_logger(__name__)


def template_name(service_type: str, tier: str) -> str:
    return f"{service_type}-{tier}"


class GetWorkflowTemplateUseCase:
    """Returns the stored template for a service, creating it from the catalog on first use."""

    def __init__(
        self,
        template_repo: IWorkflowTemplateRepository,
        catalog: ITemplateCatalog,
    ) -> None:
        self._template_repo = template_repo
        self._catalog = catalog

    @traced("workflow.get_template")
    async def execute(self, service_type: str, tier: str | None = None) -> WorkflowTemplateEntity:
        """Return the template named '<service_type>-<tier>'.

        A missing or unknown tier falls back to the catalog's default tier.

        Raises:
            NotFoundError: The service type has no blueprint.
        """
        resolved = self._catalog.resolve_tier(service_type, tier)
        if resolved is None:
            raise NotFoundError("workflow_template", service_type)
        name = template_name(service_type, resolved)
        existing = await self._template_repo.get_by_name(name)
        if existing is not None:
            return existing
        created = await self._template_repo.create_template(
            self._catalog.build_template(service_type, resolved)
        )
        logger.info("Created workflow template %s (%d tasks)", name, len(created.tasks))
        return created


class ListWorkflowTemplatesUseCase:
    """Lists templates that have been materialized so far."""

    def __init__(self, template_repo: IWorkflowTemplateRepository) -> None:
        self._template_repo = template_repo

    async def execute(self) -> list[WorkflowTemplateEntity]:
        return await self._template_repo.list_templates()
