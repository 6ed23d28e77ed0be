"""Shared utilities: datetime and id generators."""

from agency.shared.utils.datetime import days_from, ensure_utc, utc_now
from agency.shared.utils.generators import generate_cuid

__all__ = [
    "days_from",
    "ensure_utc",
    "generate_cuid",
    "utc_now",
]
