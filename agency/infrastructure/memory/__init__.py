"""In-memory storage backend (default; used by tests and local development)."""

from agency.infrastructure.memory.repositories import (
    MemoryEmployeeRepository,
    MemoryLeadRepository,
    MemorySequenceRepository,
    MemoryWorkflowRepository,
    MemoryWorkflowTemplateRepository,
)
from agency.infrastructure.memory.store import InMemoryStore

__all__ = [
    "InMemoryStore",
    "MemoryEmployeeRepository",
    "MemoryLeadRepository",
    "MemorySequenceRepository",
    "MemoryWorkflowRepository",
    "MemoryWorkflowTemplateRepository",
]
