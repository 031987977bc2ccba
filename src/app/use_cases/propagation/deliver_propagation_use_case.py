"""
Deliver Propagation Use Case

Delivers directives that were planned during a request but left for
background delivery (login peers under back-channel delivery).
"""

from typing import List

from libs.result import Result, Return
from src.app.services.directive_dispatcher import DispatchOutcome, PropagationDirective
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.unit_of_work import UnitOfWork


class DeliverPropagationUseCase:
    def __init__(self, uow: UnitOfWork, coordinator: PropagationCoordinator):
        self.uow = uow
        self.coordinator = coordinator

    async def execute(
        self, directives: List[PropagationDirective]
    ) -> Result[List[DispatchOutcome]]:
        async with self.uow:
            outcomes = await self.coordinator.fan_out(directives)
            return Return.ok(outcomes)
