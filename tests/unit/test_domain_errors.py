"""Domain error payloads, their HTTP statuses, and entity construction checks."""

import pytest

from agency.core.exception_handlers import status_for
from agency.domain.entities import (
    Milestone,
    TaskBlueprint,
    WorkflowInstanceEntity,
    WorkflowTaskEntity,
    WorkflowTemplateEntity,
)
from agency.domain.enums import TaskStatus
from agency.domain.exceptions import (
    AgencyException,
    AuthorizationException,
    CapacityExceededError,
    DependencyNotSatisfiedError,
    DuplicateActiveAssignmentError,
    InvalidTransitionError,
    NotFoundError,
    StoreUnavailableError,
    TransientStoreError,
    ValidationException,
    VersionConflictError,
)


def _template(*tasks: TaskBlueprint) -> WorkflowTemplateEntity:
    return WorkflowTemplateEntity(
        id="tpl-1",
        name="seo-growth",
        service_type="seo",
        service_tier="growth",
        estimated_duration=30,
        estimated_hours=sum(t.estimated_hours for t in tasks),
        tasks=tasks,
        milestones=(Milestone(name="Kickoff", order=1, task_orders=(1,)),),
    )


def test_error_code_defaults_to_class_name() -> None:
    err = AgencyException("boom")
    assert err.to_dict() == {"error": "AgencyException", "message": "boom", "details": {}}
    assert str(err) == "boom"


def test_invalid_transition_payload() -> None:
    err = InvalidTransitionError("task", "pending", "completed", reason="blocked")
    assert err.message == "Cannot transition task from 'pending' to 'completed': blocked"
    assert err.details == {
        "entity": "task",
        "current": "pending",
        "target": "completed",
        "reason": "blocked",
    }
    assert "reason" not in InvalidTransitionError("task", "pending", "completed").details


def test_duplicate_assignment_carries_existing_id_only_when_known() -> None:
    assert DuplicateActiveAssignmentError("s1", "l1", "a1").details["existing_assignment_id"] == "a1"
    assert "existing_assignment_id" not in DuplicateActiveAssignmentError("s1", "l1").details


def test_authorization_message_names_capability() -> None:
    assert AuthorizationException("sequence", "approve_sequences").message == (
        "Permission denied: approve_sequences on sequence"
    )
    assert AuthorizationException().details == {}


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (NotFoundError("lead", "l1"), 404),
        (ValidationException("bad", field="name"), 400),
        (AuthorizationException("sequence", "create_sequences"), 403),
        (DependencyNotSatisfiedError("t1", [1]), 409),
        (DuplicateActiveAssignmentError("s1", "l1"), 409),
        (InvalidTransitionError("workflow", "completed", "pending"), 409),
        (VersionConflictError("workflow", "w1", 3), 409),
        (TransientStoreError("update_progress", 5), 503),
        (StoreUnavailableError(), 503),
        # Only ever recorded as a planner warning; falls back to 400 if raised.
        (CapacityExceededError("e1", "t1", 12, 4), 400),
    ],
)
def test_status_for_error_codes(error: AgencyException, status: int) -> None:
    assert status_for(error.error_code) == status


def test_template_rejects_unknown_dependency() -> None:
    with pytest.raises(ValidationException, match=r"depends on unknown tasks \[9\]"):
        _template(
            TaskBlueprint(title="Audit", order=1, estimated_hours=4),
            TaskBlueprint(title="Fix", order=2, estimated_hours=4, dependencies=frozenset({9})),
        )


def test_template_rejects_dependency_cycle() -> None:
    with pytest.raises(ValidationException, match="cycle"):
        _template(
            TaskBlueprint(title="A", order=1, estimated_hours=1, dependencies=frozenset({3})),
            TaskBlueprint(title="B", order=2, estimated_hours=1, dependencies=frozenset({1})),
            TaskBlueprint(title="C", order=3, estimated_hours=1, dependencies=frozenset({2})),
        )


def test_template_rejects_duplicate_orders() -> None:
    with pytest.raises(ValidationException) as exc:
        _template(
            TaskBlueprint(title="A", order=1, estimated_hours=1),
            TaskBlueprint(title="B", order=1, estimated_hours=1),
        )
    assert exc.value.details == {"field": "tasks"}


def test_instance_and_task_guards() -> None:
    with pytest.raises(ValidationException):
        WorkflowInstanceEntity(
            id="w1", user_id="", template_id=None, service_name="SEO", service_tier="growth"
        )
    with pytest.raises(ValidationException):
        WorkflowTaskEntity(id="t1", workflow_id="w1", title="T", order=1, estimated_hours=-1)


def test_task_holds_capacity_only_while_open_and_assigned() -> None:
    task = WorkflowTaskEntity(id="t1", workflow_id="w1", title="T", order=1, estimated_hours=4)
    assert not task.holds_capacity
    task.assigned_to_id = "e1"
    task.status = TaskStatus.BLOCKED
    assert task.holds_capacity
    task.status = TaskStatus.COMPLETED
    assert not task.holds_capacity
