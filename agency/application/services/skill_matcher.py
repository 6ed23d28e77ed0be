"""Skill matching: score employees against a task's required skills and rank them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from agency.application.services.capacity_ledger import available_hours
from agency.domain.entities import EmployeeEntity


def score(employee: EmployeeEntity, required_skills: Iterable[str]) -> float:
    """Return |skills ∩ required| / max(1, |required|), a value in [0, 1]."""
    required = frozenset(required_skills)
    if not required:
        return 0.0
    return len(employee.skill_set & required) / max(1, len(required))


@dataclass(frozen=True)
class Candidate:
    """An employee considered for a task, with the values used for ranking."""

    employee: EmployeeEntity
    score: float
    available_hours: float
    open_tasks: int

    def sort_key(self) -> tuple[float, float, int, str]:
        return (-self.score, -self.available_hours, self.open_tasks, self.employee.id)


def rank_candidates(
    employees: Iterable[EmployeeEntity],
    required_skills: Iterable[str],
    open_task_counts: Mapping[str, int] | None = None,
) -> list[Candidate]:
    """Rank employees for a task.

    Employees scoring 0 against a non-empty requirement are dropped. When the
    task requires no skills every employee stays in with score 0. Order: score
    desc, available hours desc, open tasks asc, employee id asc.
    """
    required = frozenset(required_skills)
    counts = open_task_counts or {}
    candidates: list[Candidate] = []
    for employee in employees:
        s = score(employee, required)
        if required and s == 0:
            continue
        candidates.append(
            Candidate(
                employee=employee,
                score=s,
                available_hours=available_hours(employee),
                open_tasks=counts.get(employee.id, 0),
            )
        )
    candidates.sort(key=Candidate.sort_key)
    return candidates
