"""Persistence models: ORM entities and mixins."""

from agency.infrastructure.persistence.models.employee import Employee, Lead
from agency.infrastructure.persistence.models.mixins import (
    CuidMixin,
    EngineModel,
    TimestampMixin,
    VersionedEngineModel,
    VersionedMixin,
)
from agency.infrastructure.persistence.models.sequence import (
    Sequence,
    SequenceActivity,
    SequenceAssignment,
    SequenceStep,
)
from agency.infrastructure.persistence.models.workflow import (
    TeamAssignment,
    WorkflowInstance,
    WorkflowTask,
    WorkflowTemplate,
)

__all__ = [
    "CuidMixin",
    "Employee",
    "EngineModel",
    "Lead",
    "Sequence",
    "SequenceActivity",
    "SequenceAssignment",
    "SequenceStep",
    "TeamAssignment",
    "TimestampMixin",
    "VersionedEngineModel",
    "VersionedMixin",
    "WorkflowInstance",
    "WorkflowTask",
    "WorkflowTemplate",
]
