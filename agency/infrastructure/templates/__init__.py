"""Built-in workflow template catalog."""

from agency.infrastructure.templates.catalog import BLUEPRINTS, TemplateCatalog

__all__ = ["BLUEPRINTS", "TemplateCatalog"]
