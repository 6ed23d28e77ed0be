"""In-process store backing the memory repositories.

Rows are kept as entity copies so callers never share mutable state with
the store: reads return deep copies and writes replace the stored copy.
One InMemoryStore instance lives for the whole process (see
api.v1.dependencies) and is shared by every request.
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import TypeVar

from agency.domain.entities import (
    EmployeeEntity,
    LeadEntity,
    SequenceActivityEntity,
    SequenceAssignmentEntity,
    SequenceEntity,
    TeamAssignmentEntity,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
    WorkflowTemplateEntity,
)

T = TypeVar("T")


def snapshot(value: T) -> T:
    """Detached copy of a stored row."""
    return copy.deepcopy(value)


@dataclass
class InMemoryStore:
    """Tables keyed by id plus the locks that serialize writers."""

    employees: dict[str, EmployeeEntity] = field(default_factory=dict)
    leads: dict[str, LeadEntity] = field(default_factory=dict)
    templates: dict[str, WorkflowTemplateEntity] = field(default_factory=dict)
    workflows: dict[str, WorkflowInstanceEntity] = field(default_factory=dict)
    tasks: dict[str, WorkflowTaskEntity] = field(default_factory=dict)
    team: dict[str, TeamAssignmentEntity] = field(default_factory=dict)
    sequences: dict[str, SequenceEntity] = field(default_factory=dict)
    assignments: dict[str, SequenceAssignmentEntity] = field(default_factory=dict)
    activities: list[SequenceActivityEntity] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _workflow_locks: dict[str, asyncio.Lock] = field(default_factory=dict)

    def workflow_lock(self, workflow_id: str) -> asyncio.Lock:
        """Per-workflow writer lock, created on first use."""
        lock = self._workflow_locks.get(workflow_id)
        if lock is None:
            lock = self._workflow_locks[workflow_id] = asyncio.Lock()
        return lock

    def clear(self) -> None:
        for table in (
            self.employees,
            self.leads,
            self.templates,
            self.workflows,
            self.tasks,
            self.team,
            self.sequences,
            self.assignments,
            self._workflow_locks,
        ):
            table.clear()
        self.activities.clear()
