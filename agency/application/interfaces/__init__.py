"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from agency.infrastructure or agency.api.
"""

from agency.application.interfaces.repositories import (
    IEmployeeRepository,
    ILeadRepository,
    ISequenceRepository,
    IWorkflowRepository,
    IWorkflowTemplateRepository,
)
from agency.application.interfaces.services import ITemplateCatalog

__all__ = [
    "IEmployeeRepository",
    "ILeadRepository",
    "ISequenceRepository",
    "ITemplateCatalog",
    "IWorkflowRepository",
    "IWorkflowTemplateRepository",
]
