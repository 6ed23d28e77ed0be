"""Capacity ledger and skill matcher tests (memory repositories)."""

from agency.application.services import (
    CapacityLedger,
    available_hours,
    has_project_slot,
    is_eligible,
    rank_candidates,
    score,
    workload_summary,
)
from agency.domain.entities import EmployeeEntity
from agency.domain.enums import (
    Department,
    EmployeeRole,
    EmployeeStatus,
    TaskStatus,
    TeamAssignmentStatus,
)


def _employee(employee_id: str, skills=(), **fields) -> EmployeeEntity:
    return EmployeeEntity(
        id=employee_id,
        user_id=f"user-{employee_id}",
        employee_role=EmployeeRole.DEVELOPER,
        department=Department.DEVELOPMENT,
        skill_set=frozenset(skills),
        **fields,
    )


def test_available_hours_can_go_negative() -> None:
    assert available_hours(_employee("e1", weekly_capacity=40, current_workload=10)) == 30
    assert available_hours(_employee("e1", weekly_capacity=10, current_workload=12)) == -2


def test_project_slot_and_eligibility() -> None:
    full = _employee("e1", current_project_count=5, max_concurrent_projects=5)
    assert not has_project_slot(full)
    assert not is_eligible(full)
    assert is_eligible(full, on_team=True)
    assert not is_eligible(_employee("e2", available_for_work=False))
    assert not is_eligible(_employee("e3", status=EmployeeStatus.INACTIVE), on_team=True)


def test_score_is_fraction_of_required_skills() -> None:
    employee = _employee("e1", {"seo", "content_creation"})
    assert score(employee, {"seo", "analytics"}) == 0.5
    assert score(employee, {"seo"}) == 1.0
    assert score(employee, set()) == 0.0


def test_rank_candidates_orders_by_score_hours_load_then_id() -> None:
    a = _employee("a", {"seo"}, current_workload=20)
    b = _employee("b", {"seo"}, current_workload=10)
    c = _employee("c", {"seo"}, current_workload=10)
    d = _employee("d", {"seo", "analytics"}, current_workload=39)
    ranked = rank_candidates([a, b, c, d], {"seo", "analytics"}, {"b": 2, "c": 1})
    assert [cand.employee.id for cand in ranked] == ["d", "c", "b", "a"]


def test_rank_candidates_drops_zero_scores_only_when_skills_required() -> None:
    a = _employee("a", {"seo"})
    b = _employee("b", {"web_design"})
    assert [c.employee.id for c in rank_candidates([a, b], {"seo"})] == ["a"]
    assert [c.employee.id for c in rank_candidates([b, a], set())] == ["a", "b"]


def test_workload_summary_labels() -> None:
    row = workload_summary(_employee("e1", weekly_capacity=40, current_workload=34), 3, 2)
    assert row.utilization_rate == 85
    assert row.availability == "limited"
    assert row.available_hours == 6
    assert row.open_task_count == 3
    assert workload_summary(_employee("e2", weekly_capacity=0), 0, 0).utilization_rate == 0


async def test_reserve_consumes_slot_once_per_workflow(repos, make_employee, make_workflow) -> None:
    await make_employee("e1", {"seo"})
    workflow, _ = await make_workflow([(1, 4, {"seo"}, set()), (2, 6, {"seo"}, set())])
    ledger = CapacityLedger(repos.employees, repos.workflows)

    await ledger.reserve("e1", workflow.id, 4)
    employee = await ledger.reserve("e1", workflow.id, 6)

    assert employee.current_workload == 10
    assert employee.current_project_count == 1
    member = await repos.workflows.get_team_assignment(workflow.id, "e1")
    assert member is not None and member.status == TeamAssignmentStatus.ACTIVE


async def test_release_returns_slot_when_no_open_task_remains(
    repos, make_employee, make_workflow
) -> None:
    await make_employee("e1", {"seo"})
    workflow, tasks = await make_workflow([(1, 4, {"seo"}, set())])
    ledger = CapacityLedger(repos.employees, repos.workflows)
    await ledger.reserve("e1", workflow.id, 4)

    task = tasks[0]
    task.assigned_to_id = "e1"
    task.status = TaskStatus.COMPLETED
    await repos.workflows.update_task(task)
    employee = await ledger.release("e1", workflow.id, 4)

    assert employee.current_workload == 0
    assert employee.current_project_count == 0
    member = await repos.workflows.get_team_assignment(workflow.id, "e1")
    assert member.status == TeamAssignmentStatus.COMPLETED


async def test_adjust_load_is_floored_at_zero(repos, make_employee) -> None:
    await make_employee("e1", current_workload=2)
    employee = await repos.employees.adjust_load("e1", -5, -1)
    assert employee.current_workload == 0
    assert employee.current_project_count == 0
