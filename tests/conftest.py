"""Pytest configuration and fixtures for the agency engine.

HTTP tests use agency.main:app against a fresh in-memory store per test.
Unit tests get memory repositories plus factories for employees, leads,
workflows and sequences. Postgres-backed tests use db_session and are
marked requires_db.
"""

import os

os.environ.setdefault("DATABASE_BACKEND", "memory")

from collections.abc import Callable  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from agency.api.v1.dependencies import Repositories, memory_repositories  # noqa: E402
from agency.application.services import RetryPolicy  # noqa: E402
from agency.core.config import get_settings  # noqa: E402
from agency.domain.entities import (  # noqa: E402
    EmployeeEntity,
    LeadEntity,
    SequenceEntity,
    SequenceStep,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
)
from agency.domain.enums import (  # noqa: E402
    Department,
    EmployeeRole,
    SequenceStatus,
    StepType,
)
from agency.infrastructure.memory import InMemoryStore  # noqa: E402
from agency.main import app  # noqa: E402
from agency.shared.context import clear_current_actor  # noqa: E402
from agency.shared.utils.generators import generate_cuid  # noqa: E402

# No sleeping between retries in tests.
FAST_RETRY = RetryPolicy(attempts=3, backoff_seconds=0.0)


@pytest.fixture(autouse=True)
def _reset_actor():
    clear_current_actor()
    yield
    clear_current_actor()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repos(store: InMemoryStore) -> Repositories:
    return memory_repositories(store)


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return FAST_RETRY


@pytest.fixture
async def client(store: InMemoryStore, monkeypatch: pytest.MonkeyPatch) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), backed by the test's store."""
    monkeypatch.setenv("DATABASE_BACKEND", "memory")
    get_settings.cache_clear()
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    get_settings.cache_clear()


@pytest.fixture
def make_employee(repos: Repositories) -> Callable:
    """Factory: persist an active employee and return it."""

    async def _make(
        employee_id: str,
        skills: set[str] | frozenset[str] = frozenset(),
        *,
        weekly_capacity: float = 40.0,
        current_workload: float = 0.0,
        current_project_count: int = 0,
        max_concurrent_projects: int = 5,
        role: EmployeeRole = EmployeeRole.DEVELOPER,
        user_id: str | None = None,
        **fields,
    ) -> EmployeeEntity:
        employee = EmployeeEntity(
            id=employee_id,
            user_id=user_id or f"user-{employee_id}",
            employee_role=role,
            department=Department.DEVELOPMENT,
            weekly_capacity=weekly_capacity,
            current_workload=current_workload,
            current_project_count=current_project_count,
            max_concurrent_projects=max_concurrent_projects,
            skill_set=frozenset(skills),
            **fields,
        )
        return await repos.employees.create_employee(employee)

    return _make


@pytest.fixture
def make_workflow(repos: Repositories) -> Callable:
    """Factory: persist a workflow with tasks given as (order, hours, skills, deps) tuples."""

    async def _make(
        tasks: list[tuple[int, float, set[str], set[int]]],
        *,
        user_id: str = "client-1",
        workflow_id: str | None = None,
    ) -> tuple[WorkflowInstanceEntity, list[WorkflowTaskEntity]]:
        workflow = WorkflowInstanceEntity(
            id=workflow_id or generate_cuid(),
            user_id=user_id,
            template_id=None,
            service_name="Website",
            service_tier="growth",
        )
        entities = [
            WorkflowTaskEntity(
                id=f"{workflow.id}-t{order}",
                workflow_id=workflow.id,
                title=f"Task {order}",
                order=order,
                estimated_hours=hours,
                required_skills=frozenset(skills),
                dependencies=frozenset(deps),
            )
            for order, hours, skills, deps in tasks
        ]
        created = await repos.workflows.create_instance(workflow, entities)
        return created, await repos.workflows.get_tasks(created.id)

    return _make


@pytest.fixture
def make_lead(repos: Repositories) -> Callable:
    async def _make(lead_id: str | None = None, name: str = "Acme") -> LeadEntity:
        return await repos.leads.create_lead(LeadEntity(id=lead_id or generate_cuid(), name=name))

    return _make


def email_step(order: int, **fields) -> SequenceStep:
    fields.setdefault("title", f"Email {order}")
    fields.setdefault("subject", "Hello")
    fields.setdefault("content", "Hi there")
    return SequenceStep(order=order, step_type=StepType.EMAIL, **fields)


def task_step(order: int, **fields) -> SequenceStep:
    fields.setdefault("title", f"Task {order}")
    fields.setdefault("content", "Call the lead")
    return SequenceStep(order=order, step_type=StepType.TASK, **fields)


@pytest.fixture
def make_sequence(repos: Repositories) -> Callable:
    """Factory: persist a sequence (approved by default) with the given steps."""

    async def _make(
        steps: list[SequenceStep] | None = None,
        *,
        status: SequenceStatus = SequenceStatus.APPROVED,
        name: str = "Welcome",
    ) -> SequenceEntity:
        sequence = SequenceEntity(
            id=generate_cuid(),
            name=name,
            status=status,
            steps=tuple(steps if steps is not None else [email_step(0), task_step(1)]),
        )
        return await repos.sequences.create_sequence(sequence)

    return _make


@pytest.fixture
def email_step_factory() -> Callable:
    return email_step


@pytest.fixture
def task_step_factory() -> Callable:
    return task_step


@pytest.fixture
async def db_session():
    """Database session for repository integration tests. Rolls back after the test.

    Requires DATABASE_BACKEND=postgres and DATABASE_URL with tables created by
    scripts.init_db. Skips when Postgres is not configured; run without a DB
    via: pytest -m 'not requires_db'.
    """
    if os.environ.get("DATABASE_BACKEND") != "postgres" or not os.environ.get("DATABASE_URL"):
        pytest.skip("Postgres not configured: set DATABASE_BACKEND=postgres and DATABASE_URL")
    get_settings.cache_clear()
    from agency.infrastructure.persistence import database

    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip("Postgres not configured")
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()
