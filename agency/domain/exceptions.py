"""Domain exceptions for the agency workflow engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class AgencyException(Exception):
    """Base exception for all engine errors.

    All custom exceptions inherit from this class to allow consistent error
    handling and logging. Presentation layer maps these to HTTP responses
    using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies and planner warnings."""
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationException(AgencyException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthorizationException(AgencyException):
    """Raised when the actor lacks the capability required for the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'sequence').
            action: Optional capability that was required (e.g. 'approve_sequences').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class NotFoundError(AgencyException):
    """Raised when a referenced employee, task, workflow, sequence or lead is absent."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow', 'lead').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class AlreadyAssignedError(AgencyException):
    """Raised when the team planner is re-run on a workflow that already has a team."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            f"Team already assigned for workflow {workflow_id}",
            "ALREADY_ASSIGNED",
            {"workflow_id": workflow_id},
        )


class DependencyNotSatisfiedError(AgencyException):
    """Raised when a task is started or completed before its prerequisites are done."""

    def __init__(self, task_id: str, pending_dependencies: list[int]) -> None:
        """Initialize with the blocked task and the unfinished prerequisite orders.

        Args:
            task_id: Task whose transition was refused.
            pending_dependencies: Orders of sibling tasks that are not completed.
        """
        super().__init__(
            f"Task {task_id} has incomplete dependencies: {pending_dependencies}",
            "DEPENDENCY_NOT_SATISFIED",
            {"task_id": task_id, "pending_dependencies": pending_dependencies},
        )


class DuplicateActiveAssignmentError(AgencyException):
    """Raised when a lead already has an open assignment of the same sequence."""

    def __init__(self, sequence_id: str, lead_id: str, existing_id: str | None = None) -> None:
        details: dict[str, Any] = {"sequence_id": sequence_id, "lead_id": lead_id}
        if existing_id:
            details["existing_assignment_id"] = existing_id
        super().__init__(
            "Lead already has an active assignment for this sequence",
            "DUPLICATE_ACTIVE_ASSIGNMENT",
            details,
        )


class InvalidTransitionError(AgencyException):
    """Raised for any state-machine edge that is not allowed."""

    def __init__(
        self,
        entity: str,
        current: str,
        target: str,
        reason: str | None = None,
    ) -> None:
        """Initialize with the entity kind and the refused edge.

        Args:
            entity: Kind of object (e.g. 'task', 'workflow', 'sequence_assignment').
            current: Status the object is in.
            target: Status that was requested.
            reason: Optional extra explanation.
        """
        message = f"Cannot transition {entity} from '{current}' to '{target}'"
        if reason:
            message = f"{message}: {reason}"
        details: dict[str, Any] = {"entity": entity, "current": current, "target": target}
        if reason:
            details["reason"] = reason
        super().__init__(message, "INVALID_TRANSITION", details)


class CapacityExceededError(AgencyException):
    """Recorded (not raised) when the planner overcommits an employee."""

    def __init__(
        self,
        employee_id: str,
        task_id: str,
        required_hours: float,
        available_hours: float,
    ) -> None:
        super().__init__(
            f"Employee {employee_id} overcommitted by task {task_id}: "
            f"needs {required_hours}h, {available_hours}h available",
            "CAPACITY_EXCEEDED",
            {
                "employee_id": employee_id,
                "task_id": task_id,
                "required_hours": required_hours,
                "available_hours": available_hours,
            },
        )


class VersionConflictError(AgencyException):
    """Raised when an optimistic compare-and-swap write lost to a concurrent writer."""

    def __init__(self, resource_type: str, resource_id: str, expected_version: int) -> None:
        super().__init__(
            f"{resource_type} {resource_id} was modified concurrently",
            "VERSION_CONFLICT",
            {
                "resource_type": resource_type,
                "resource_id": resource_id,
                "expected_version": expected_version,
            },
        )


class StoreUnavailableError(AgencyException):
    """Raised by repositories when the backing store fails transiently."""

    def __init__(self, message: str = "Store temporarily unavailable") -> None:
        super().__init__(message, "STORE_UNAVAILABLE")


class TransientStoreError(AgencyException):
    """Raised after local retries of a conflicting or failing write are exhausted."""

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempts; retry later",
            "TRANSIENT_STORE_ERROR",
            {"operation": operation, "attempts": attempts},
        )
