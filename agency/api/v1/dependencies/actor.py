"""Acting-user dependency.

Authentication happens at the gateway, which forwards the user id and
platform role in headers (names configurable in Settings). The values are
stored in the request's actor context for audit stamping.
"""

from __future__ import annotations

from fastapi import Request

from agency.core.config import get_settings
from agency.domain.exceptions import ValidationException
from agency.shared.context import (
    ActorContext,
    clear_current_actor,
    get_actor_context,
    set_current_actor,
)
from agency.shared.enums import UserRole


async def get_actor(request: Request) -> ActorContext:
    """Resolve the acting user from gateway headers; system actor when absent."""
    settings = get_settings()
    user_id = (request.headers.get(settings.actor_id_header) or "").strip()
    raw_role = (request.headers.get(settings.actor_role_header) or "").strip().lower()
    if not user_id:
        clear_current_actor()
        return get_actor_context()
    role: UserRole | None = None
    if raw_role:
        if raw_role not in UserRole.values():
            raise ValidationException(
                f"Unknown actor role {raw_role!r}; expected one of {UserRole.values()}",
                field=settings.actor_role_header,
            )
        role = UserRole(raw_role)
    set_current_actor(user_id, role)
    return get_actor_context()
