"""Lead domain entity (the target of a sequence assignment)."""

from dataclasses import dataclass


@dataclass
class LeadEntity:
    """Minimal lead record; the CRM owns everything else about a lead."""

    id: str
    name: str
    email: str | None = None
    company: str | None = None
    status: str = "new"
