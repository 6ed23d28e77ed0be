"""Sequence, step, assignment and activity ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency.domain.enums import (
    DelayUnit,
    SequenceAssignmentStatus,
    SequenceStatus,
    StepType,
)
from agency.infrastructure.persistence.database import Base
from agency.infrastructure.persistence.models.mixins import (
    CuidMixin,
    EngineModel,
    VersionedEngineModel,
    values_check,
)


class Sequence(EngineModel, Base):
    """Outreach sequence with approval metadata. Table: sequence."""

    __tablename__ = "sequence"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=SequenceStatus.DRAFT.value, index=True
    )
    sequence_type: Mapped[str] = mapped_column(String, nullable=False, default="email")
    target_audience: Mapped[str] = mapped_column(String, nullable=False, default="new_lead")
    approved_by_id: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    times_used: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        values_check("status", SequenceStatus.values(), "sequence_status_check"),
    )


class SequenceStep(CuidMixin, Base):
    """One step of a sequence. Table: sequence_step."""

    __tablename__ = "sequence_step"

    sequence_id: Mapped[str] = mapped_column(
        String, ForeignKey("sequence.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    step_type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str | None] = mapped_column(String, nullable=True)
    delay_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    delay_unit: Mapped[str] = mapped_column(
        String, nullable=False, default=DelayUnit.HOURS.value
    )
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        values_check("step_type", StepType.values(), "sequence_step_type_check"),
        values_check("delay_unit", DelayUnit.values(), "sequence_step_delay_unit_check"),
    )


class SequenceAssignment(VersionedEngineModel, Base):
    """A sequence applied to a lead. Table: sequence_assignment.

    The partial unique index allows at most one pending/active assignment
    per (sequence, lead); completed and paused rows are unrestricted.
    """

    __tablename__ = "sequence_assignment"

    sequence_id: Mapped[str] = mapped_column(
        String, ForeignKey("sequence.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lead_id: Mapped[str] = mapped_column(
        String, ForeignKey("lead.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=SequenceAssignmentStatus.PENDING.value, index=True
    )
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steps_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    emails_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tasks_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assigned_by_id: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "uq_sequence_assignment_open",
            "sequence_id",
            "lead_id",
            unique=True,
            postgresql_where=sa.text("status IN ('pending', 'active')"),
        ),
        values_check(
            "status", SequenceAssignmentStatus.values(), "sequence_assignment_status_check"
        ),
    )


class SequenceActivity(CuidMixin, Base):
    """Append-only activity log of an assignment. Table: sequence_activity."""

    __tablename__ = "sequence_activity"

    assignment_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("sequence_assignment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    action_type: Mapped[str] = mapped_column(String, nullable=False)
    result: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
