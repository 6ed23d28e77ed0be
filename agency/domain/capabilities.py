"""Capabilities: explicit permission flags granted per employee role.

Each role maps to a frozenset of Capability members. Overrides stored on an
employee record are applied on top of the role defaults (grants and revokes).
Admins hold every capability; clients hold none.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

from agency.domain.enums import EmployeeRole
from agency.domain.exceptions import AuthorizationException
from agency.shared.enums import UserRole, _ValuesMixin


class Capability(_ValuesMixin, str, Enum):
    """A single permission flag."""

    APPROVE_SEQUENCES = "approve_sequences"
    CREATE_SEQUENCES = "create_sequences"
    VIEW_AI_RECOMMENDATIONS = "view_ai_recommendations"
    APPROVE_AI_RECOMMENDATIONS = "approve_ai_recommendations"
    VIEW_ALL_PROJECTS = "view_all_projects"
    VIEW_ASSIGNED_PROJECTS = "view_assigned_projects"
    EDIT_PROJECTS = "edit_projects"
    DELETE_PROJECTS = "delete_projects"
    ASSIGN_PROJECTS = "assign_projects"
    CREATE_TASKS = "create_tasks"
    EDIT_TASKS = "edit_tasks"
    DELETE_TASKS = "delete_tasks"
    REASSIGN_TASKS = "reassign_tasks"
    UPLOAD_FILES = "upload_files"
    VIEW_CLIENT_FILES = "view_client_files"
    EDIT_CLIENT_FILES = "edit_client_files"
    DELETE_FILES = "delete_files"
    MESSAGE_CLIENTS = "message_clients"
    VIEW_CLIENT_MESSAGES = "view_client_messages"
    SEND_CLIENT_EMAILS = "send_client_emails"
    VIEW_LEADS = "view_leads"
    CREATE_LEADS = "create_leads"
    EDIT_LEADS = "edit_leads"
    DELETE_LEADS = "delete_leads"
    ASSIGN_LEADS = "assign_leads"
    LOG_TIME = "log_time"
    APPROVE_TIME = "approve_time"
    VIEW_TEAM_TIME = "view_team_time"
    VIEW_ANALYTICS = "view_analytics"
    VIEW_FINANCIALS = "view_financials"
    EXPORT_REPORTS = "export_reports"
    MANAGE_EMPLOYEES = "manage_employees"
    VIEW_EMPLOYEE_PERFORMANCE = "view_employee_performance"


C = Capability

# Granted to every employee role.
_EMPLOYEE_BASE: frozenset[Capability] = frozenset(
    {
        C.VIEW_AI_RECOMMENDATIONS,
        C.VIEW_ASSIGNED_PROJECTS,
        C.EDIT_PROJECTS,
        C.CREATE_TASKS,
        C.EDIT_TASKS,
        C.UPLOAD_FILES,
        C.VIEW_CLIENT_FILES,
        C.MESSAGE_CLIENTS,
        C.VIEW_CLIENT_MESSAGES,
        C.VIEW_LEADS,
        C.CREATE_LEADS,
        C.EDIT_LEADS,
        C.LOG_TIME,
        C.VIEW_ANALYTICS,
    }
)

ROLE_CAPABILITIES: dict[EmployeeRole, frozenset[Capability]] = {
    EmployeeRole.ACCOUNT_MANAGER: _EMPLOYEE_BASE
    | {
        C.APPROVE_SEQUENCES,
        C.CREATE_SEQUENCES,
        C.APPROVE_AI_RECOMMENDATIONS,
        C.VIEW_ALL_PROJECTS,
        C.ASSIGN_PROJECTS,
        C.DELETE_TASKS,
        C.REASSIGN_TASKS,
        C.EDIT_CLIENT_FILES,
        C.SEND_CLIENT_EMAILS,
        C.ASSIGN_LEADS,
        C.VIEW_TEAM_TIME,
        C.VIEW_FINANCIALS,
        C.EXPORT_REPORTS,
        C.VIEW_EMPLOYEE_PERFORMANCE,
    },
    EmployeeRole.SALES_REP: (_EMPLOYEE_BASE - {C.VIEW_ANALYTICS})
    | {C.SEND_CLIENT_EMAILS, C.VIEW_ANALYTICS, C.EXPORT_REPORTS},
    EmployeeRole.DEVELOPER: _EMPLOYEE_BASE | {C.VIEW_ALL_PROJECTS, C.EDIT_CLIENT_FILES},
    EmployeeRole.DESIGNER: _EMPLOYEE_BASE | {C.VIEW_ALL_PROJECTS, C.EDIT_CLIENT_FILES},
    EmployeeRole.SEO_SPECIALIST: _EMPLOYEE_BASE
    | {C.CREATE_SEQUENCES, C.VIEW_ALL_PROJECTS, C.EXPORT_REPORTS},
    EmployeeRole.CONTENT_WRITER: _EMPLOYEE_BASE
    | {C.CREATE_SEQUENCES, C.VIEW_ALL_PROJECTS},
}

ALL_CAPABILITIES: frozenset[Capability] = frozenset(Capability)


def resolve_capabilities(
    user_role: UserRole | str,
    employee_role: EmployeeRole | str | None = None,
    overrides: Mapping[Capability | str, bool] | None = None,
) -> frozenset[Capability]:
    """Return the effective capability set for a user.

    Unknown employee roles fall back to developer defaults. Overrides map a
    capability to True (grant) or False (revoke) and only apply to employees.
    Override keys that name no known capability are ignored.
    """
    role = UserRole(user_role) if isinstance(user_role, str) else user_role
    if role == UserRole.ADMIN:
        return ALL_CAPABILITIES
    if role != UserRole.EMPLOYEE:
        return frozenset()
    try:
        base = ROLE_CAPABILITIES[EmployeeRole(employee_role)]
    except ValueError:
        base = ROLE_CAPABILITIES[EmployeeRole.DEVELOPER]
    if not overrides:
        return base
    known = {Capability(k): v for k, v in overrides.items() if k in Capability.values()}
    granted = {c for c, v in known.items() if v}
    revoked = {c for c, v in known.items() if not v}
    return (base | granted) - revoked


def has_capability(capabilities: Iterable[Capability], capability: Capability) -> bool:
    """Return whether capability is in the given set."""
    return capability in set(capabilities)


def require_capability(
    capabilities: Iterable[Capability], capability: Capability, *, resource: str
) -> None:
    """Raise AuthorizationException unless capability is present."""
    if not has_capability(capabilities, capability):
        raise AuthorizationException(resource=resource, action=capability.value)
