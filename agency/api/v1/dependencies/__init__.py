"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for repositories, the acting user and
application use cases. Routes depend only on these dependencies, not on
infrastructure directly. Switch backends via DATABASE_BACKEND in config.
"""

from .actor import get_actor
from .repositories import Repositories, get_repositories, memory_repositories
from .use_cases import (
    get_assign_team_use_case,
    get_assignment_query_use_case,
    get_bulk_assign_use_case,
    get_create_assignment_use_case,
    get_create_instance_use_case,
    get_list_templates_use_case,
    get_record_step_use_case,
    get_retry_policy,
    get_sequence_lifecycle_use_case,
    get_team_workload_use_case,
    get_template_catalog,
    get_template_use_case,
    get_update_assignment_use_case,
    get_update_task_use_case,
    get_update_workflow_use_case,
    get_workflow_query_use_case,
)

__all__ = [
    "Repositories",
    "get_actor",
    "get_assign_team_use_case",
    "get_assignment_query_use_case",
    "get_bulk_assign_use_case",
    "get_create_assignment_use_case",
    "get_create_instance_use_case",
    "get_list_templates_use_case",
    "get_record_step_use_case",
    "get_repositories",
    "get_retry_policy",
    "get_sequence_lifecycle_use_case",
    "get_team_workload_use_case",
    "get_template_catalog",
    "get_template_use_case",
    "get_update_assignment_use_case",
    "get_update_task_use_case",
    "get_update_workflow_use_case",
    "get_workflow_query_use_case",
    "memory_repositories",
]
