"""Persistence repositories. Re-exports for dependency injection."""

from agency.infrastructure.persistence.repositories.base import SqlRepository
from agency.infrastructure.persistence.repositories.employee_repo import (
    EmployeeRepository,
    LeadRepository,
)
from agency.infrastructure.persistence.repositories.sequence_repo import SequenceRepository
from agency.infrastructure.persistence.repositories.workflow_repo import WorkflowRepository
from agency.infrastructure.persistence.repositories.workflow_template_repo import (
    WorkflowTemplateRepository,
)

__all__ = [
    "EmployeeRepository",
    "LeadRepository",
    "SequenceRepository",
    "SqlRepository",
    "WorkflowRepository",
    "WorkflowTemplateRepository",
]
