"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from agency.domain.entities import WorkflowTemplateEntity


# Template catalog interface
class ITemplateCatalog(Protocol):
    """Source of built-in workflow blueprints keyed by service type and tier."""

    def service_types(self) -> list[str]:
        """Return the known service types."""

    def resolve_tier(self, service_type: str, tier: str | None) -> str | None:
        """Return the tier that will be used for (service_type, tier).

        Falls back to the default tier when tier is missing or unknown.
        Returns None when the service type is unknown.
        """

    def build_template(self, service_type: str, tier: str) -> WorkflowTemplateEntity:
        """Build a new (unsaved) template entity for a resolved pair."""
