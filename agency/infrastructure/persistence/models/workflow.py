"""Workflow template, instance, task and team assignment ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from agency.domain.enums import TaskStatus, TeamAssignmentStatus, TeamRole, WorkflowStatus
from agency.infrastructure.persistence.database import Base
from agency.infrastructure.persistence.models.mixins import (
    EngineModel,
    VersionedEngineModel,
    values_check,
)


class WorkflowTemplate(EngineModel, Base):
    """Blueprint for a (service_type, service_tier). Table: workflow_template.

    tasks and milestones are stored as JSON lists; the template is immutable
    once created.
    """

    __tablename__ = "workflow_template"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    service_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    service_tier: Mapped[str] = mapped_column(String, nullable=False)
    estimated_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False)
    tasks: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    milestones: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)


class WorkflowInstance(VersionedEngineModel, Base):
    """One running service engagement. Table: workflow_instance."""

    __tablename__ = "workflow_instance"

    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    template_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workflow_template.id", ondelete="SET NULL"), nullable=True
    )
    service_name: Mapped[str] = mapped_column(String, nullable=False)
    service_tier: Mapped[str] = mapped_column(String, nullable=False)
    service_amount: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=WorkflowStatus.PENDING.value, index=True
    )
    progress: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    team_assigned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expected_completion_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        values_check("status", WorkflowStatus.values(), "workflow_instance_status_check"),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100", name="workflow_instance_progress_range"
        ),
    )


class WorkflowTask(EngineModel, Base):
    """Unit of work in a workflow. Table: workflow_task.

    dependencies holds the orders of sibling tasks that must complete first.
    """

    __tablename__ = "workflow_task"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_instance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order: Mapped[int] = mapped_column("task_order", Integer, nullable=False)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False)
    actual_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    required_skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    dependencies: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TaskStatus.PENDING.value, index=True
    )
    assigned_to_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("employee.id", ondelete="SET NULL"), nullable=True, index=True
    )
    blocked_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_work: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    visible_to_client: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.text("false")
    )

    __table_args__ = (
        UniqueConstraint("workflow_id", "task_order", name="uq_workflow_task_order"),
        Index("ix_workflow_task_assignee_status", "assigned_to_id", "status"),
        values_check("status", TaskStatus.values(), "workflow_task_status_check"),
    )


class TeamAssignment(EngineModel, Base):
    """Employee membership on a workflow team. Table: team_assignment."""

    __tablename__ = "team_assignment"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_instance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[str] = mapped_column(
        String, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TeamAssignmentStatus.ACTIVE.value
    )
    role: Mapped[str] = mapped_column(
        String, nullable=False, default=TeamRole.CONTRIBUTOR.value
    )
    allocated_hours: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    assigned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("workflow_id", "employee_id", name="uq_team_assignment_member"),
        values_check("status", TeamAssignmentStatus.values(), "team_assignment_status_check"),
        values_check("role", TeamRole.values(), "team_assignment_role_check"),
    )
