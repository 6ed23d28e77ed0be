"""Team assignment planner tests: ordering, capacity, gaps and repeat runs."""

import asyncio

import pytest

from agency.api.v1.dependencies import memory_repositories
from agency.application.services import CapacityLedger, RetryPolicy, TeamAssignmentPlanner
from agency.domain.entities import EmployeeEntity, WorkflowInstanceEntity, WorkflowTaskEntity
from agency.domain.enums import Department, EmployeeRole, TaskStatus, TeamRole
from agency.domain.exceptions import AlreadyAssignedError, NotFoundError
from agency.infrastructure.memory import InMemoryStore


@pytest.fixture
def planner(repos, retry_policy) -> TeamAssignmentPlanner:
    ledger = CapacityLedger(repos.employees, repos.workflows)
    return TeamAssignmentPlanner(repos.employees, repos.workflows, ledger, retry_policy)


async def test_assigns_best_skill_match(planner, repos, make_employee, make_workflow) -> None:
    await make_employee("dev", {"web_development", "frontend"})
    await make_employee("seo", {"seo"})
    workflow, tasks = await make_workflow(
        [(1, 8, {"web_development"}, set()), (2, 4, {"seo"}, set())]
    )

    plan = await planner.assign_team_to_workflow(workflow.id)

    assert plan.mapping == {tasks[0].id: "dev", tasks[1].id: "seo"}
    assert plan.unassigned == []
    assert plan.warnings == []
    stored = await repos.workflows.get_tasks(workflow.id)
    assert all(t.status == TaskStatus.ASSIGNED for t in stored)
    assert (await repos.workflows.get_by_id(workflow.id)).team_assigned


async def test_reservations_update_employee_load(
    planner, repos, make_employee, make_workflow
) -> None:
    await make_employee("dev", {"web_development"})
    workflow, _ = await make_workflow(
        [(1, 8, {"web_development"}, set()), (2, 6, {"web_development"}, {1})]
    )

    await planner.assign_team_to_workflow(workflow.id)

    employee = await repos.employees.get_by_id("dev")
    assert employee.current_workload == 14
    assert employee.current_project_count == 1
    team = await repos.workflows.get_team(workflow.id)
    assert [(m.employee_id, m.role, m.allocated_hours) for m in team] == [
        ("dev", TeamRole.LEAD, 14)
    ]


async def test_prefers_candidate_with_room_over_higher_load(
    planner, make_employee, make_workflow
) -> None:
    await make_employee("busy", {"seo", "analytics"}, current_workload=38)
    await make_employee("free", {"seo"}, current_workload=0)
    workflow, tasks = await make_workflow([(1, 5, {"seo", "analytics"}, set())])

    plan = await planner.assign_team_to_workflow(workflow.id)

    assert plan.mapping[tasks[0].id] == "free"


async def test_overcommits_top_candidate_with_warning(
    planner, repos, make_employee, make_workflow
) -> None:
    await make_employee("only", {"seo"}, weekly_capacity=10, current_workload=8)
    workflow, tasks = await make_workflow([(1, 6, {"seo"}, set())])

    plan = await planner.assign_team_to_workflow(workflow.id)

    assert plan.mapping[tasks[0].id] == "only"
    assert len(plan.warnings) == 1
    warning = plan.warnings[0].to_dict()
    assert warning["error"] == "CAPACITY_EXCEEDED"
    assert warning["details"]["available_hours"] == 2
    assert plan.assignments[0].overcommitted
    assert (await repos.employees.get_by_id("only")).current_workload == 14


async def test_task_without_matching_skill_stays_pending(
    planner, repos, make_employee, make_workflow
) -> None:
    await make_employee("dev", {"web_development"})
    workflow, tasks = await make_workflow([(1, 3, {"paid_ads"}, set())])

    plan = await planner.assign_team_to_workflow(workflow.id)

    assert plan.mapping == {}
    assert [(u.task_id, u.reason) for u in plan.unassigned] == [
        (tasks[0].id, "no eligible employee has the required skills")
    ]
    assert (await repos.workflows.get_task(tasks[0].id)).status == TaskStatus.PENDING


async def test_employee_without_project_slot_is_skipped(
    planner, make_employee, make_workflow
) -> None:
    await make_employee("full", {"seo", "analytics", "strategy"}, current_project_count=2, max_concurrent_projects=2)
    await make_employee("partial", {"seo", "analytics"}, current_project_count=0)
    workflow, tasks = await make_workflow([(1, 2, {"seo", "analytics", "strategy"}, set())])

    plan = await planner.assign_team_to_workflow(workflow.id)

    assert plan.mapping[tasks[0].id] == "partial"


async def test_second_run_raises_already_assigned(planner, make_employee, make_workflow) -> None:
    await make_employee("dev", {"seo"})
    workflow, _ = await make_workflow([(1, 2, {"seo"}, set())])
    await planner.assign_team_to_workflow(workflow.id)

    with pytest.raises(AlreadyAssignedError):
        await planner.assign_team_to_workflow(workflow.id)


async def test_concurrent_runs_assign_once(planner, repos, make_employee, make_workflow) -> None:
    await make_employee("dev", {"seo"})
    workflow, _ = await make_workflow([(1, 4, {"seo"}, set())])

    results = await asyncio.gather(
        planner.assign_team_to_workflow(workflow.id),
        planner.assign_team_to_workflow(workflow.id),
        return_exceptions=True,
    )

    assert sum(isinstance(r, AlreadyAssignedError) for r in results) == 1
    assert (await repos.employees.get_by_id("dev")).current_workload == 4


async def _plan_fresh_store() -> dict[str, str]:
    repos = memory_repositories(InMemoryStore())
    for employee_id in ("b", "a", "c"):
        await repos.employees.create_employee(
            EmployeeEntity(
                id=employee_id,
                user_id=f"user-{employee_id}",
                employee_role=EmployeeRole.SEO_SPECIALIST,
                department=Department.MARKETING,
                skill_set=frozenset({"seo"}),
            )
        )
    workflow = WorkflowInstanceEntity(
        id="wf-1", user_id="client-1", template_id=None, service_name="SEO", service_tier="growth"
    )
    tasks = [
        WorkflowTaskEntity(
            id=f"wf-1-t{order}",
            workflow_id="wf-1",
            title=f"Task {order}",
            order=order,
            estimated_hours=12,
            required_skills=frozenset({"seo"}),
        )
        for order in range(1, 6)
    ]
    await repos.workflows.create_instance(workflow, tasks)
    ledger = CapacityLedger(repos.employees, repos.workflows)
    planner = TeamAssignmentPlanner(repos.employees, repos.workflows, ledger, RetryPolicy(attempts=1, backoff_seconds=0.0))
    plan = await planner.assign_team_to_workflow("wf-1")
    return plan.mapping


async def test_same_input_gives_same_plan() -> None:
    first = await _plan_fresh_store()
    second = await _plan_fresh_store()

    assert first == second
    assert [first[f"wf-1-t{order}"] for order in range(1, 6)] == ["a", "b", "c", "a", "b"]


async def test_unknown_workflow_raises_not_found(planner) -> None:
    with pytest.raises(NotFoundError):
        await planner.assign_team_to_workflow("missing")
