"""Domain enumerations for the workflow and sequence engine.

Enums represent the fixed lifecycle states of employees, workflows, tasks,
team assignments, sequences and sequence assignments.
"""

from enum import Enum

from agency.shared.enums import _ValuesMixin


class EmployeeStatus(_ValuesMixin, str, Enum):
    """Employment status. Only active employees can receive new work."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class EmployeeRole(_ValuesMixin, str, Enum):
    """Job function of an employee; drives default capabilities."""

    ACCOUNT_MANAGER = "account_manager"
    SALES_REP = "sales_rep"
    DEVELOPER = "developer"
    DESIGNER = "designer"
    SEO_SPECIALIST = "seo_specialist"
    CONTENT_WRITER = "content_writer"


class Department(_ValuesMixin, str, Enum):
    """Organisational department."""

    SALES = "sales"
    FULFILLMENT = "fulfillment"
    MARKETING = "marketing"
    DEVELOPMENT = "development"


class WorkflowStatus(_ValuesMixin, str, Enum):
    """Workflow instance lifecycle status.

    pending -> in_progress -> completed; on_hold and cancelled are reachable
    from any non-terminal state by explicit admin action.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further transitions are allowed."""
        return self in (WorkflowStatus.COMPLETED, WorkflowStatus.CANCELLED)


class TaskStatus(_ValuesMixin, str, Enum):
    """Workflow task lifecycle status."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"

    @classmethod
    def open_statuses(cls) -> frozenset["TaskStatus"]:
        """Statuses in which an assignee holds reserved capacity for the task."""
        return frozenset({cls.ASSIGNED, cls.IN_PROGRESS, cls.BLOCKED})


class TeamAssignmentStatus(_ValuesMixin, str, Enum):
    """Status of an employee's membership in a workflow team."""

    ACTIVE = "active"
    COMPLETED = "completed"


class TeamRole(_ValuesMixin, str, Enum):
    """Role of a team member on a workflow, derived from their share of tasks."""

    LEAD = "lead"
    CONTRIBUTOR = "contributor"


class SequenceStatus(_ValuesMixin, str, Enum):
    """Sequence template lifecycle (authoring, approval, activation)."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"

    @classmethod
    def assignable(cls) -> frozenset["SequenceStatus"]:
        """Statuses in which a sequence may be attached to leads."""
        return frozenset({cls.APPROVED, cls.ACTIVE})


class SequenceAssignmentStatus(_ValuesMixin, str, Enum):
    """Lifecycle of a sequence applied to a single lead."""

    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"

    @classmethod
    def non_terminal(cls) -> frozenset["SequenceAssignmentStatus"]:
        """Statuses that count toward the one-open-assignment-per-lead rule."""
        return frozenset({cls.PENDING, cls.ACTIVE})


class StepType(_ValuesMixin, str, Enum):
    """Kind of touchpoint a sequence step performs. DELAY is a pure wait."""

    EMAIL = "email"
    SMS = "sms"
    TASK = "task"
    REMINDER = "reminder"
    NOTE = "note"
    DELAY = "delay"


class DelayUnit(_ValuesMixin, str, Enum):
    """Unit of a sequence step's delay."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
