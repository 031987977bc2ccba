"""
Acknowledge Propagation Use Case

Records the outcome a client domain reported for one directive.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.unit_of_work import UnitOfWork
from .dtos import AcknowledgeCommand, PropagationTargetInfo


class AcknowledgePropagationUseCase:
    """
    Use case for directive acknowledgements.

    Business Rules:
    - The signed payload of the directive must accompany the acknowledgement
    - Only dispatched (or pending) targets change state
    - Acknowledging a terminal target again returns it unchanged
    """

    def __init__(self, uow: UnitOfWork, coordinator: PropagationCoordinator):
        self.uow = uow
        self.coordinator = coordinator

    async def execute(
        self, target_id: UUID, command: AcknowledgeCommand
    ) -> Result[PropagationTargetInfo]:
        async with self.uow:
            result = await self.coordinator.acknowledge(
                target_id, command.payload, command.success, command.error
            )
            if result.is_err():
                return result
            await self.uow.commit()
            return Return.ok(PropagationTargetInfo.from_entity(result.value))
