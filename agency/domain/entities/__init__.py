"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from agency.domain.entities.employee import EmployeeEntity
from agency.domain.entities.lead import LeadEntity
from agency.domain.entities.sequence import (
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    SequenceStep,
    validate_steps,
)
from agency.domain.entities.workflow import (
    Milestone,
    TaskBlueprint,
    TeamAssignmentEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
    WorkflowTemplateEntity,
)

__all__ = [
    "EmployeeEntity",
    "LeadEntity",
    "Milestone",
    "SequenceActivityEntity",
    "SequenceAssignmentEntity",
    "SequenceEntity",
    "SequenceStep",
    "TaskBlueprint",
    "TeamAssignmentEntity",
    "WorkflowInstanceEntity",
    "WorkflowTaskEntity",
    "WorkflowTemplateEntity",
    "validate_steps",
]
