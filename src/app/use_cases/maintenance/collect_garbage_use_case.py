"""
Collect Garbage Use Case

Periodic cleanup run by the session GC timer.
"""

import logging
from typing import Dict

from libs.result import Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class CollectGarbageUseCase:
    """
    Use case for session and propagation garbage collection.

    Business Rules:
    - Expired sessions are revoked one at a time, each under its own lock
    - Refresh-token rows past expiry are deleted
    - Dispatched targets past their acknowledgement deadline become failed
    """

    def __init__(
        self,
        uow: UnitOfWork,
        store: SessionStore,
        coordinator: PropagationCoordinator,
        batch_size: int = 100,
    ):
        self.uow = uow
        self.store = store
        self.coordinator = coordinator
        self.batch_size = batch_size

    async def execute(self) -> Result[Dict[str, int]]:
        async with self.uow:
            sessions_expired = await self.store.expire_stale(limit=self.batch_size)
            targets_failed = await self.coordinator.expire_overdue(limit=self.batch_size)
            await self.uow.commit()

        if targets_failed:
            logger.info(f"Propagation GC: {targets_failed} target(s) passed their deadline")
        return Return.ok(
            {"sessions_expired": sessions_expired, "targets_failed": targets_failed}
        )
