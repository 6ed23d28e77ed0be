"""Assign team use case: thin traced entry point over the planner."""

from __future__ import annotations

from agency.application.dtos.workflow import AssignmentPlan
from agency.application.services.team_assignment_planner import TeamAssignmentPlanner
from agency.shared.telemetry.tracing import add_span_attributes, add_span_event, traced


class AssignTeamUseCase:
    """Runs the team assignment planner once for a workflow."""

    def __init__(self, planner: TeamAssignmentPlanner) -> None:
        self._planner = planner

    @traced("workflow.assign_team")
    async def execute(self, workflow_id: str) -> AssignmentPlan:
        """Staff the workflow's pending tasks.

        Raises:
            NotFoundError: Workflow does not exist.
            AlreadyAssignedError: A team was already assigned.
        """
        plan = await self._planner.assign_team_to_workflow(workflow_id)
        add_span_attributes(
            workflow_id=workflow_id,
            assigned=len(plan.assignments),
            unassigned=len(plan.unassigned),
            overcommitted=len(plan.warnings),
        )
        for warning in plan.warnings:
            add_span_event("capacity_exceeded", warning.details)
        return plan
