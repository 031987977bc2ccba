"""
Retry Propagation Use Case

Explicit, operator-triggered re-delivery of a failed directive.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from .dtos import PropagationTargetInfo


class RetryPropagationUseCase:
    """
    Use case for retrying a failed propagation target.

    Business Rules:
    - Only failed targets are retryable; retries are never automatic
    - Set-cookie retries re-mint credentials and require the client to
      still be in the session's active set
    - Clear-cookie retries are always allowed (the endpoint is idempotent)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        coordinator: PropagationCoordinator,
        store: SessionStore,
    ):
        self.uow = uow
        self.coordinator = coordinator
        self.store = store

    async def execute(self, target_id: UUID) -> Result[PropagationTargetInfo]:
        async with self.uow:
            result = await self.coordinator.retry(target_id, self.store)
            if result.is_err():
                return result
            target = result.value

            audit = AuditEvent(
                client_id=target.client_id,
                session_id=target.session_id,
                action="propagation_retried",
                event_metadata={
                    "target_id": str(target.id),
                    "action": target.action.value,
                    "status": target.status.value,
                    "attempts": target.attempts,
                },
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            return Return.ok(PropagationTargetInfo.from_entity(target))
