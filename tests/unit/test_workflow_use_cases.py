"""Workflow use cases against the memory store: templates, instances, task and status updates."""

import asyncio
from datetime import timedelta

import pytest

from agency.application.services import CapacityLedger, ProgressTracker, TeamAssignmentPlanner
from agency.application.use_cases import (
    CreateWorkflowInstanceUseCase,
    GetTeamWorkloadUseCase,
    GetWorkflowTemplateUseCase,
    GetWorkflowUseCase,
    ListWorkflowTemplatesUseCase,
    UpdateTaskStatusUseCase,
    UpdateWorkflowStatusUseCase,
)
from agency.application.use_cases.workflows.queries import reached_milestones
from agency.domain.entities import Milestone
from agency.domain.enums import TaskStatus, TeamAssignmentStatus, WorkflowStatus
from agency.domain.exceptions import (
    DependencyNotSatisfiedError,
    InvalidTransitionError,
    NotFoundError,
    ValidationException,
)
from agency.infrastructure.templates import TemplateCatalog


@pytest.fixture
def ledger(repos) -> CapacityLedger:
    return CapacityLedger(repos.employees, repos.workflows)


@pytest.fixture
def planner(repos, ledger, retry_policy) -> TeamAssignmentPlanner:
    return TeamAssignmentPlanner(repos.employees, repos.workflows, ledger, retry_policy)


@pytest.fixture
def update_task(repos, ledger, retry_policy) -> UpdateTaskStatusUseCase:
    tracker = ProgressTracker(repos.workflows, retry_policy)
    return UpdateTaskStatusUseCase(repos.workflows, repos.employees, ledger, tracker)


@pytest.fixture
def update_workflow(repos, ledger, retry_policy) -> UpdateWorkflowStatusUseCase:
    return UpdateWorkflowStatusUseCase(repos.workflows, ledger, retry_policy)


@pytest.fixture
def get_template(repos) -> GetWorkflowTemplateUseCase:
    return GetWorkflowTemplateUseCase(repos.templates, TemplateCatalog())


class TestTemplates:
    async def test_template_created_once_per_service_and_tier(self, repos, get_template) -> None:
        first = await get_template.execute("web-development", "starter")
        again = await get_template.execute("web-development", "STARTER")

        assert first.name == "web-development-starter"
        assert len(first.tasks) == 7
        assert again.id == first.id
        assert [t.name for t in await ListWorkflowTemplatesUseCase(repos.templates).execute()] == [
            "web-development-starter"
        ]

    async def test_unknown_tier_falls_back_to_default(self, get_template) -> None:
        template = await get_template.execute("web-development", "platinum")
        assert template.name == "web-development-growth"
        assert len(template.tasks) == 10

    async def test_service_without_requested_tier_uses_growth(self, get_template) -> None:
        template = await get_template.execute("seo", "starter")
        assert template.service_tier == "growth"

    async def test_unknown_service_type_raises(self, get_template) -> None:
        with pytest.raises(NotFoundError):
            await get_template.execute("podcasting")


class TestCreateInstance:
    async def test_tasks_cloned_from_blueprints(self, repos, get_template) -> None:
        template = await get_template.execute("web-development", "starter")
        use_case = CreateWorkflowInstanceUseCase(repos.templates, repos.workflows)

        detail = await use_case.execute(template.id, "client-7", service_name="Website")

        assert detail.workflow.status == WorkflowStatus.PENDING
        assert detail.workflow.progress == 0
        assert detail.workflow.service_tier == "starter"
        assert [t.order for t in detail.tasks] == list(range(1, 8))
        assert all(t.status == TaskStatus.PENDING for t in detail.tasks)
        assert detail.tasks[3].dependencies == frozenset({3})
        assert detail.workflow.expected_completion_date - detail.workflow.created_at == timedelta(
            days=14
        )
        assert len(await repos.workflows.get_tasks(detail.workflow.id)) == 7

    async def test_invalid_input(self, repos, get_template) -> None:
        template = await get_template.execute("seo")
        use_case = CreateWorkflowInstanceUseCase(repos.templates, repos.workflows)

        with pytest.raises(NotFoundError):
            await use_case.execute("missing", "client-1", service_name="SEO")
        with pytest.raises(ValidationException):
            await use_case.execute(template.id, "client-1", service_name="SEO", service_amount=-1)
        with pytest.raises(ValidationException):
            await use_case.execute(template.id, "client-1", service_name="   ")


class TestUpdateTaskStatus:
    async def test_full_lifecycle_moves_capacity_and_progress(
        self, repos, planner, update_task, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"})
        workflow, tasks = await make_workflow([(1, 4, {"seo"}, set()), (2, 6, {"seo"}, {1})])
        await planner.assign_team_to_workflow(workflow.id)
        first, second = tasks

        result = await update_task.execute(first.id, TaskStatus.IN_PROGRESS)
        assert result.workflow.status == WorkflowStatus.IN_PROGRESS
        assert result.workflow_status_changed

        result = await update_task.execute(first.id, TaskStatus.COMPLETED, actual_hours=5)
        assert result.workflow.progress == 50
        assert result.task.actual_hours == 5
        employee = await repos.employees.get_by_id("e1")
        assert (employee.current_workload, employee.current_project_count) == (6, 1)

        await update_task.execute(second.id, TaskStatus.IN_PROGRESS)
        result = await update_task.execute(
            second.id, TaskStatus.COMPLETED, completed_work="Report sent"
        )

        assert result.workflow.status == WorkflowStatus.COMPLETED
        assert result.workflow.progress == 100
        employee = await repos.employees.get_by_id("e1")
        assert (employee.current_workload, employee.current_project_count) == (0, 0)
        member = await repos.workflows.get_team_assignment(workflow.id, "e1")
        assert member.status == TeamAssignmentStatus.COMPLETED

    async def test_fan_out_after_first_task(
        self, planner, update_task, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"}, weekly_capacity=40)
        workflow, tasks = await make_workflow(
            [(1, 2, {"seo"}, set()), (2, 3, {"seo"}, {1}), (3, 1, {"seo"}, {1})]
        )
        plan = await planner.assign_team_to_workflow(workflow.id)
        assert plan.mapping == {t.id: "e1" for t in tasks}
        first, second, third = tasks

        with pytest.raises(DependencyNotSatisfiedError):
            await update_task.execute(second.id, TaskStatus.IN_PROGRESS)
        await update_task.execute(first.id, TaskStatus.IN_PROGRESS)
        await update_task.execute(first.id, TaskStatus.COMPLETED)
        await update_task.execute(second.id, TaskStatus.IN_PROGRESS)
        await update_task.execute(third.id, TaskStatus.IN_PROGRESS)

        result = await update_task.execute(second.id, TaskStatus.COMPLETED)
        assert result.workflow.progress == 67
        result = await update_task.execute(third.id, TaskStatus.COMPLETED)
        assert result.workflow.status == WorkflowStatus.COMPLETED
        assert result.workflow.progress == 100

    async def test_dependencies_enforced(
        self, planner, update_task, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"})
        workflow, tasks = await make_workflow([(1, 4, {"seo"}, set()), (2, 6, {"seo"}, {1})])
        await planner.assign_team_to_workflow(workflow.id)

        with pytest.raises(DependencyNotSatisfiedError):
            await update_task.execute(tasks[1].id, TaskStatus.IN_PROGRESS)

    async def test_blocked_task_keeps_reservation(
        self, repos, planner, update_task, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"})
        workflow, tasks = await make_workflow([(1, 4, {"seo"}, set())])
        await planner.assign_team_to_workflow(workflow.id)
        await update_task.execute(tasks[0].id, TaskStatus.IN_PROGRESS)

        result = await update_task.execute(
            tasks[0].id, TaskStatus.BLOCKED, blocked_reason="waiting on client assets"
        )

        assert result.task.blocked_reason == "waiting on client assets"
        assert (await repos.employees.get_by_id("e1")).current_workload == 4

    async def test_reassignment_moves_reservation(
        self, repos, planner, update_task, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"})
        workflow, tasks = await make_workflow([(1, 4, {"seo"}, set())])
        await planner.assign_team_to_workflow(workflow.id)
        await make_employee("e2", {"seo"})

        result = await update_task.execute(tasks[0].id, assigned_to_id="e2")

        assert result.task.assigned_to_id == "e2"
        e1 = await repos.employees.get_by_id("e1")
        e2 = await repos.employees.get_by_id("e2")
        assert (e1.current_workload, e1.current_project_count) == (0, 0)
        assert (e2.current_workload, e2.current_project_count) == (4, 1)

    async def test_reassign_to_unknown_employee(
        self, update_task, make_workflow
    ) -> None:
        _, tasks = await make_workflow([(1, 4, {"seo"}, set())])
        with pytest.raises(NotFoundError):
            await update_task.execute(tasks[0].id, assigned_to_id="ghost")

    async def test_tasks_frozen_on_held_workflow(
        self, update_task, update_workflow, make_workflow
    ) -> None:
        workflow, tasks = await make_workflow([(1, 4, set(), set())])
        await update_workflow.execute(workflow.id, WorkflowStatus.ON_HOLD)

        with pytest.raises(InvalidTransitionError):
            await update_task.execute(tasks[0].id, TaskStatus.IN_PROGRESS)

    async def test_negative_actual_hours_rejected(self, update_task, make_workflow) -> None:
        _, tasks = await make_workflow([(1, 4, set(), set())])
        with pytest.raises(ValidationException):
            await update_task.execute(tasks[0].id, actual_hours=-1)

    async def test_unknown_task(self, update_task) -> None:
        with pytest.raises(NotFoundError):
            await update_task.execute("missing", TaskStatus.IN_PROGRESS)


class TestUpdateWorkflowStatus:
    async def test_cancel_releases_all_capacity(
        self, repos, planner, update_workflow, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"})
        await make_employee("e2", {"web_design"})
        workflow, tasks = await make_workflow(
            [(1, 4, {"seo"}, set()), (2, 6, {"web_design"}, set()), (3, 2, {"seo"}, {1})]
        )
        await planner.assign_team_to_workflow(workflow.id)

        cancelled = await update_workflow.execute(workflow.id, WorkflowStatus.CANCELLED)

        assert cancelled.status == WorkflowStatus.CANCELLED
        for employee_id in ("e1", "e2"):
            employee = await repos.employees.get_by_id(employee_id)
            assert (employee.current_workload, employee.current_project_count) == (0, 0)
        team = await repos.workflows.get_team(workflow.id)
        assert {m.status for m in team} == {TeamAssignmentStatus.COMPLETED}
        assert (await repos.workflows.get_task(tasks[0].id)).status == TaskStatus.ASSIGNED

    async def test_cancel_waits_for_inflight_task_update(
        self,
        repos,
        ledger,
        retry_policy,
        planner,
        update_task,
        update_workflow,
        make_employee,
        make_workflow,
    ) -> None:
        await make_employee("e1", {"seo"}, current_workload=20)
        workflow, tasks = await make_workflow([(1, 4, {"seo"}, set()), (2, 6, {"seo"}, set())])
        await planner.assign_team_to_workflow(workflow.id)
        await update_task.execute(tasks[0].id, TaskStatus.IN_PROGRESS)

        class SlowWrites:
            """Yields to the event loop before persisting a task."""

            def __init__(self, inner) -> None:
                self._inner = inner

            def __getattr__(self, name):
                return getattr(self._inner, name)

            async def update_task(self, task):
                for _ in range(5):
                    await asyncio.sleep(0)
                return await self._inner.update_task(task)

        tracker = ProgressTracker(repos.workflows, retry_policy)
        slow_update = UpdateTaskStatusUseCase(
            SlowWrites(repos.workflows), repos.employees, ledger, tracker
        )

        completed, cancelled = await asyncio.gather(
            slow_update.execute(tasks[0].id, TaskStatus.COMPLETED),
            update_workflow.execute(workflow.id, WorkflowStatus.CANCELLED),
        )

        assert completed.task.status == TaskStatus.COMPLETED
        assert cancelled.status == WorkflowStatus.CANCELLED
        employee = await repos.employees.get_by_id("e1")
        assert (employee.current_workload, employee.current_project_count) == (20, 0)

    async def test_cancelled_tasks_stop_counting_as_open(
        self, repos, planner, update_workflow, make_employee, make_workflow
    ) -> None:
        await make_employee("a", {"seo"})
        await make_employee("b", {"seo"})
        workflow, _ = await make_workflow([(1, 4, {"seo"}, set())])
        first = await planner.assign_team_to_workflow(workflow.id)
        assert set(first.mapping.values()) == {"a"}

        await update_workflow.execute(workflow.id, WorkflowStatus.CANCELLED)

        assert await repos.workflows.count_open_tasks_by_assignee() == {}
        rows = await GetTeamWorkloadUseCase(repos.employees, repos.workflows).execute()
        assert [row.open_task_count for row in rows] == [0, 0]
        fresh, _ = await make_workflow([(1, 4, {"seo"}, set())])
        plan = await planner.assign_team_to_workflow(fresh.id)
        assert set(plan.mapping.values()) == {"a"}

    async def test_cannot_complete_with_open_tasks(self, update_workflow, make_workflow) -> None:
        workflow, _ = await make_workflow([(1, 4, set(), set())])
        with pytest.raises(InvalidTransitionError):
            await update_workflow.execute(workflow.id, WorkflowStatus.COMPLETED)

    async def test_notes_only_update_bumps_version(
        self, repos, update_workflow, make_workflow
    ) -> None:
        workflow, _ = await make_workflow([(1, 4, set(), set())])

        updated = await update_workflow.execute(workflow.id, internal_notes="priority client")

        assert updated.internal_notes == "priority client"
        assert updated.status == WorkflowStatus.PENDING
        assert updated.version == workflow.version + 1

    async def test_same_status_is_a_no_op(self, update_workflow, make_workflow) -> None:
        workflow, _ = await make_workflow([(1, 4, set(), set())])
        unchanged = await update_workflow.execute(workflow.id, WorkflowStatus.PENDING)
        assert unchanged.version == workflow.version


class TestQueries:
    async def test_detail_reports_reached_milestones(self, repos, get_template) -> None:
        template = await get_template.execute("web-development", "starter")
        detail = await CreateWorkflowInstanceUseCase(repos.templates, repos.workflows).execute(
            template.id, "client-1", service_name="Website"
        )
        for task in detail.tasks:
            if task.order in (2, 3):
                task.status = TaskStatus.COMPLETED
                await repos.workflows.update_task(task)

        fetched = await GetWorkflowUseCase(repos.workflows, repos.templates).execute(
            detail.workflow.id
        )

        assert [m.name for m in fetched.milestones] == [
            "Design Approved",
            "Development Complete",
            "Launched",
        ]
        assert fetched.milestones_reached == ["Design Approved"]

    def test_empty_milestone_is_never_reached(self) -> None:
        assert reached_milestones([Milestone(name="Kickoff", order=1, task_orders=())], []) == []

    async def test_list_filters_by_owner(self, repos, make_workflow) -> None:
        await make_workflow([(1, 1, set(), set())], user_id="client-1")
        await make_workflow([(1, 1, set(), set())], user_id="client-2")
        query = GetWorkflowUseCase(repos.workflows, repos.templates)

        rows = await query.list_workflows(user_id="client-2")

        assert [w.user_id for w in rows] == ["client-2"]

    async def test_team_workload(
        self, repos, planner, make_employee, make_workflow
    ) -> None:
        await make_employee("e1", {"seo"}, weekly_capacity=20)
        await make_employee("e2", {"web_design"})
        workflow, _ = await make_workflow([(1, 16, {"seo"}, set())])
        await planner.assign_team_to_workflow(workflow.id)
        use_case = GetTeamWorkloadUseCase(repos.employees, repos.workflows)

        rows = {row.employee_id: row for row in await use_case.execute()}

        assert rows["e1"].utilization_rate == 80
        assert rows["e1"].availability == "limited"
        assert rows["e1"].open_task_count == 1
        assert rows["e1"].active_assignment_count == 1
        assert rows["e2"].availability == "available"
        with pytest.raises(NotFoundError):
            await use_case.execute("ghost")
