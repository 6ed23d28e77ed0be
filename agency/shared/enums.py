"""Shared enumerations for the agency engine.

Cross-cutting enums used by application, infrastructure and presentation
(e.g. the platform role of the acting user). Engine-specific lifecycle enums
(workflow, task, sequence statuses) live in agency.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class UserRole(_ValuesMixin, str, Enum):
    """Platform role of the acting user (resolved by the auth gateway)."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    CLIENT = "client"


class ActorType(_ValuesMixin, str, Enum):
    """Who performed an action recorded in an audit trail."""

    USER = "user"
    SYSTEM = "system"
