"""
List Propagation Targets Use Case
"""

from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ErrorCode
from .dtos import PropagationTargetInfo, PropagationTargetListResponse


class ListPropagationTargetsUseCase:
    def __init__(self, uow: UnitOfWork, coordinator: PropagationCoordinator):
        self.uow = uow
        self.coordinator = coordinator

    async def execute(self, session_id: UUID) -> Result[PropagationTargetListResponse]:
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))

            targets = await self.coordinator.list_for_session(session_id)
            return Return.ok(
                PropagationTargetListResponse(
                    session_id=str(session_id),
                    targets=[PropagationTargetInfo.from_entity(t) for t in targets],
                )
            )
