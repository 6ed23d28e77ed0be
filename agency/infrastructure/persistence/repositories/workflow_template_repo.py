"""Workflow template repository (SQLAlchemy).

Templates are stored with their task blueprints and milestones as JSON.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from agency.domain.entities import Milestone, TaskBlueprint, WorkflowTemplateEntity
from agency.infrastructure.persistence.models.workflow import WorkflowTemplate
from agency.infrastructure.persistence.repositories.base import SqlRepository


def _blueprint_to_dict(bp: TaskBlueprint) -> dict[str, Any]:
    return {
        "title": bp.title,
        "order": bp.order,
        "estimated_hours": bp.estimated_hours,
        "description": bp.description,
        "required_skills": sorted(bp.required_skills),
        "dependencies": sorted(bp.dependencies),
        "visible_to_client": bp.visible_to_client,
    }


def _template_to_entity(t: WorkflowTemplate) -> WorkflowTemplateEntity:
    """Map WorkflowTemplate ORM to WorkflowTemplateEntity."""
    return WorkflowTemplateEntity(
        id=t.id,
        name=t.name,
        service_type=t.service_type,
        service_tier=t.service_tier,
        estimated_duration=t.estimated_duration,
        estimated_hours=t.estimated_hours,
        tasks=tuple(
            TaskBlueprint(
                title=d["title"],
                order=int(d["order"]),
                estimated_hours=float(d["estimated_hours"]),
                description=d.get("description", ""),
                required_skills=frozenset(d.get("required_skills", ())),
                dependencies=frozenset(int(x) for x in d.get("dependencies", ())),
                visible_to_client=bool(d.get("visible_to_client", False)),
            )
            for d in t.tasks
        ),
        milestones=tuple(
            Milestone(name=m["name"], order=int(m["order"]), task_orders=tuple(m["task_orders"]))
            for m in (t.milestones or [])
        ),
        display_name=t.display_name,
    )


class WorkflowTemplateRepository(SqlRepository):
    """Workflow template repository. Implements IWorkflowTemplateRepository."""

    async def get_by_id(self, template_id: str) -> WorkflowTemplateEntity | None:
        row = await self._scalar_one_or_none(
            select(WorkflowTemplate).where(WorkflowTemplate.id == template_id)
        )
        return _template_to_entity(row) if row else None

    async def get_by_name(self, name: str) -> WorkflowTemplateEntity | None:
        row = await self._scalar_one_or_none(
            select(WorkflowTemplate).where(WorkflowTemplate.name == name)
        )
        return _template_to_entity(row) if row else None

    async def create_template(self, template: WorkflowTemplateEntity) -> WorkflowTemplateEntity:
        """Insert; on a concurrent insert of the same name, return the stored template."""
        row = WorkflowTemplate(
            id=template.id,
            name=template.name,
            display_name=template.display_name,
            service_type=template.service_type,
            service_tier=template.service_tier,
            estimated_duration=template.estimated_duration,
            estimated_hours=template.estimated_hours,
            tasks=[_blueprint_to_dict(bp) for bp in template.tasks],
            milestones=[
                {"name": m.name, "order": m.order, "task_orders": list(m.task_orders)}
                for m in template.milestones
            ],
        )
        try:
            async with self.db.begin_nested():
                self.db.add(row)
                await self.db.flush()
        except IntegrityError:
            existing = await self.get_by_name(template.name)
            if existing is None:
                raise
            return existing
        return _template_to_entity(row)

    async def list_templates(self) -> list[WorkflowTemplateEntity]:
        rows = await self._scalars(select(WorkflowTemplate).order_by(WorkflowTemplate.name.asc()))
        return [_template_to_entity(r) for r in rows]
