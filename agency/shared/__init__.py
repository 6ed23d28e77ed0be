"""Shared utilities: actor context, enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from agency.shared.context import (
    ActorContext,
    clear_current_actor,
    get_actor_context,
    get_current_actor_id,
    set_current_actor,
)
from agency.shared.enums import ActorType, UserRole
from agency.shared.utils import days_from, ensure_utc, generate_cuid, utc_now

__all__ = [
    "ActorContext",
    "ActorType",
    "UserRole",
    "clear_current_actor",
    "days_from",
    "ensure_utc",
    "generate_cuid",
    "get_actor_context",
    "get_current_actor_id",
    "set_current_actor",
    "utc_now",
]
