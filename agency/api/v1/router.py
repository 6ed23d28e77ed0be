"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from agency.api.v1.dependencies (no manual repo/service
construction).
"""

from fastapi import APIRouter

from agency.api.v1.endpoints import health, sequences, team, workflows

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
api_router.include_router(team.router, prefix="/team", tags=["team"])
api_router.include_router(sequences.router, prefix="/sequences", tags=["sequences"])
