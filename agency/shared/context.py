"""Request-scoped actor context using contextvars.

The gateway resolves authentication and forwards the acting user in request
headers; the API layer stores it here so application code can stamp audit
fields (assigned_by_id, approved_by_id) without threading it through every
call.

Usage:
    set_current_actor("user123", UserRole.EMPLOYEE)
    actor = get_actor_context()
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass

from agency.shared.enums import ActorType, UserRole

_current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)
_current_user_role: ContextVar[UserRole | None] = ContextVar("current_user_role", default=None)
_current_actor_type: ContextVar[ActorType] = ContextVar(
    "current_actor_type", default=ActorType.SYSTEM
)


@dataclass(frozen=True)
class ActorContext:
    """Immutable snapshot of the current actor."""

    user_id: str | None
    user_role: UserRole | None
    actor_type: ActorType

    @property
    def is_admin(self) -> bool:
        return self.user_role == UserRole.ADMIN


def set_current_actor(
    user_id: str | None,
    user_role: UserRole | None = None,
    actor_type: ActorType = ActorType.USER,
) -> None:
    """Set the acting user for this request.

    Raises:
        ValueError: If actor_type is USER and user_id is None or empty.
    """
    if actor_type == ActorType.USER and not user_id:
        raise ValueError("user_id is required when actor_type is USER")
    _current_user_id.set(user_id)
    _current_user_role.set(user_role)
    _current_actor_type.set(actor_type)


def clear_current_actor() -> None:
    """Reset to the anonymous system actor."""
    _current_user_id.set(None)
    _current_user_role.set(None)
    _current_actor_type.set(ActorType.SYSTEM)


def get_current_actor_id() -> str | None:
    """Return the current user ID, or None for system actions."""
    return _current_user_id.get()


def get_actor_context() -> ActorContext:
    """Return a snapshot of the current actor context."""
    return ActorContext(
        user_id=_current_user_id.get(),
        user_role=_current_user_role.get(),
        actor_type=_current_actor_type.get(),
    )


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> Token[str | None]:
    """Bind the request ID for log records emitted while handling the request."""
    return _request_id.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id.reset(token)


def get_request_id() -> str | None:
    return _request_id.get()
