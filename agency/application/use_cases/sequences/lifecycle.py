"""Sequence lifecycle use case: create, submit, approve, reject, activate, deactivate.

Approval-type actions require the approve_sequences capability; creating
and submitting require create_sequences. Capabilities come from the actor's
platform role and, for employees, their employee role plus overrides.
"""

from __future__ import annotations

from agency.application.interfaces.repositories import IEmployeeRepository, ISequenceRepository
from agency.application.services import sequence_lifecycle
from agency.application.services.sequence_lifecycle import DeactivateAction
from agency.domain.capabilities import Capability, require_capability, resolve_capabilities
from agency.domain.entities import SequenceEntity, SequenceStep
from agency.domain.exceptions import AuthorizationException, NotFoundError, ValidationException
from agency.shared.context import ActorContext
from agency.shared.enums import UserRole
from agency.shared.telemetry.logging import get_logger
from agency.shared.telemetry.tracing import traced
from agency.shared.utils.datetime import utc_now
from agency.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


class SequenceLifecycleUseCase:
    """Authoring and approval transitions for sequences."""

    def __init__(
        self,
        sequence_repo: ISequenceRepository,
        employee_repo: IEmployeeRepository,
    ) -> None:
        self._sequence_repo = sequence_repo
        self._employee_repo = employee_repo

    async def _require(self, actor: ActorContext, capability: Capability) -> str:
        if not actor.user_id or actor.user_role is None:
            raise AuthorizationException(resource="sequence", action=capability.value)
        if actor.is_admin:
            return actor.user_id
        employee = None
        if actor.user_role == UserRole.EMPLOYEE:
            employee = await self._employee_repo.get_by_user_id(actor.user_id)
        capabilities = resolve_capabilities(
            actor.user_role,
            employee.employee_role if employee else None,
            employee.capability_overrides if employee else None,
        )
        require_capability(capabilities, capability, resource="sequence")
        return actor.user_id

    async def get(self, sequence_id: str) -> SequenceEntity:
        """Return a sequence with its steps; raises NotFoundError."""
        return await self._get(sequence_id)

    async def _get(self, sequence_id: str) -> SequenceEntity:
        sequence = await self._sequence_repo.get_sequence(sequence_id)
        if sequence is None:
            raise NotFoundError("sequence", sequence_id)
        return sequence

    async def create(
        self,
        actor: ActorContext,
        *,
        name: str,
        steps: list[SequenceStep],
        description: str | None = None,
        sequence_type: str = "email",
        target_audience: str = "new_lead",
    ) -> SequenceEntity:
        """Create a draft sequence."""
        user_id = await self._require(actor, Capability.CREATE_SEQUENCES)
        if not name.strip():
            raise ValidationException("Sequence name is required", field="name")
        now = utc_now()
        sequence = SequenceEntity(
            id=generate_cuid(),
            name=name.strip(),
            description=description,
            sequence_type=sequence_type,
            target_audience=target_audience,
            steps=tuple(sorted(steps, key=lambda s: s.order)),
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        return await self._sequence_repo.create_sequence(sequence)

    @traced("sequence.submit")
    async def submit(self, sequence_id: str, actor: ActorContext) -> SequenceEntity:
        await self._require(actor, Capability.CREATE_SEQUENCES)
        sequence = await self._get(sequence_id)
        sequence_lifecycle.submit(sequence, utc_now())
        return await self._sequence_repo.update_sequence(sequence)

    @traced("sequence.approve")
    async def approve(self, sequence_id: str, actor: ActorContext) -> SequenceEntity:
        approver_id = await self._require(actor, Capability.APPROVE_SEQUENCES)
        sequence = await self._get(sequence_id)
        sequence_lifecycle.approve(sequence, approver_id, utc_now())
        logger.info("Sequence %s approved by %s", sequence_id, approver_id)
        return await self._sequence_repo.update_sequence(sequence)

    @traced("sequence.reject")
    async def reject(self, sequence_id: str, actor: ActorContext, feedback: str) -> SequenceEntity:
        await self._require(actor, Capability.APPROVE_SEQUENCES)
        sequence = await self._get(sequence_id)
        sequence_lifecycle.reject(sequence, feedback, utc_now())
        return await self._sequence_repo.update_sequence(sequence)

    @traced("sequence.activate")
    async def activate(self, sequence_id: str, actor: ActorContext) -> SequenceEntity:
        user_id = await self._require(actor, Capability.APPROVE_SEQUENCES)
        sequence = await self._get(sequence_id)
        sequence_lifecycle.activate(sequence, user_id, utc_now())
        logger.info("Sequence %s activated by %s", sequence_id, user_id)
        return await self._sequence_repo.update_sequence(sequence)

    @traced("sequence.deactivate")
    async def deactivate(
        self, sequence_id: str, actor: ActorContext, action: DeactivateAction
    ) -> SequenceEntity:
        await self._require(actor, Capability.APPROVE_SEQUENCES)
        sequence = await self._get(sequence_id)
        sequence_lifecycle.deactivate(sequence, action, utc_now())
        return await self._sequence_repo.update_sequence(sequence)
