"""Domain layer: entities, enums, capabilities, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from agency.domain.entities import (
    EmployeeEntity,
    LeadEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
    WorkflowTemplateEntity,
)
from agency.domain.enums import SequenceAssignmentStatus, TaskStatus, WorkflowStatus
from agency.domain.exceptions import (
    AgencyException,
    AlreadyAssignedError,
    AuthorizationException,
    CapacityExceededError,
    DependencyNotSatisfiedError,
    DuplicateActiveAssignmentError,
    InvalidTransitionError,
    NotFoundError,
    TransientStoreError,
    ValidationException,
)

__all__ = [
    # Entities
    "EmployeeEntity",
    "LeadEntity",
    "SequenceAssignmentEntity",
    "SequenceEntity",
    "WorkflowInstanceEntity",
    "WorkflowTaskEntity",
    "WorkflowTemplateEntity",
    # Enums
    "SequenceAssignmentStatus",
    "TaskStatus",
    "WorkflowStatus",
    # Exceptions
    "AgencyException",
    "AlreadyAssignedError",
    "AuthorizationException",
    "CapacityExceededError",
    "DependencyNotSatisfiedError",
    "DuplicateActiveAssignmentError",
    "InvalidTransitionError",
    "NotFoundError",
    "TransientStoreError",
    "ValidationException",
]
