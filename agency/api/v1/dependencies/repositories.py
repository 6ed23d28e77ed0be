"""Repository dependencies (composition root).

One Repositories bundle per request. With the memory backend the bundle
wraps the process-wide InMemoryStore (app.state.store); with postgres it
wraps one transactional session, committed when the request succeeds and
rolled back when it raises.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from fastapi import Request

from agency.application.interfaces.repositories import (
    IEmployeeRepository,
    ILeadRepository,
    ISequenceRepository,
    IWorkflowRepository,
    IWorkflowTemplateRepository,
)
from agency.core.config import get_settings
from agency.infrastructure.memory import (
    InMemoryStore,
    MemoryEmployeeRepository,
    MemoryLeadRepository,
    MemorySequenceRepository,
    MemoryWorkflowRepository,
    MemoryWorkflowTemplateRepository,
)


@dataclass(frozen=True)
class Repositories:
    """Repositories sharing one unit of work."""

    employees: IEmployeeRepository
    leads: ILeadRepository
    templates: IWorkflowTemplateRepository
    workflows: IWorkflowRepository
    sequences: ISequenceRepository


def memory_repositories(store: InMemoryStore) -> Repositories:
    return Repositories(
        employees=MemoryEmployeeRepository(store),
        leads=MemoryLeadRepository(store),
        templates=MemoryWorkflowTemplateRepository(store),
        workflows=MemoryWorkflowRepository(store),
        sequences=MemorySequenceRepository(store),
    )


async def get_repositories(request: Request) -> AsyncIterator[Repositories]:
    """Yield the request's repositories for the configured backend."""
    if get_settings().database_backend == "memory":
        store = getattr(request.app.state, "store", None)
        if store is None:
            store = request.app.state.store = InMemoryStore()
        yield memory_repositories(store)
        return

    from agency.infrastructure.persistence.database import transactional_session
    from agency.infrastructure.persistence.repositories import (
        EmployeeRepository,
        LeadRepository,
        SequenceRepository,
        WorkflowRepository,
        WorkflowTemplateRepository,
    )

    async with transactional_session() as session:
        yield Repositories(
            employees=EmployeeRepository(session),
            leads=LeadRepository(session),
            templates=WorkflowTemplateRepository(session),
            workflows=WorkflowRepository(session),
            sequences=SequenceRepository(session),
        )
