"""Team API: capacity and workload reporting."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from agency.api.v1.dependencies import get_team_workload_use_case
from agency.application.use_cases import GetTeamWorkloadUseCase
from agency.schemas.team import EmployeeWorkloadResponse

router = APIRouter()


@router.get("/workload", response_model=list[EmployeeWorkloadResponse])
async def get_team_workload(
    use_case: Annotated[GetTeamWorkloadUseCase, Depends(get_team_workload_use_case)],
    employee_id: str | None = Query(None),
):
    """Workload snapshot for active employees, or one employee."""
    rows = await use_case.execute(employee_id)
    return [EmployeeWorkloadResponse.model_validate(r) for r in rows]
