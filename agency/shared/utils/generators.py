"""Identifier generation.

All entity ids (employees, workflows, tasks, sequences, assignments,
activities) are CUID2 strings.
"""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new collision-resistant id (CUID2)."""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(f"Expected str from cuid_generator, got {type(result).__name__}")
    return result
