"""
Revoke Sessions Use Case

Handles administrative revocation of every session a user holds.
"""

from typing import Any, Dict
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import PropagationDirectiveView
from src.domain.entities import AuditEvent
from src.domain.errors import ErrorCode


class RevokeSessionsUseCase:
    """
    Use case for revoking all sessions of a user.

    Business Rules:
    - Sessions are found through the user reverse index and revoked one
      session lock at a time
    - Every removed client gets a clear-cookie directive
    - Revocation is audit-logged for security compliance
    """

    def __init__(
        self,
        uow: UnitOfWork,
        store: SessionStore,
        coordinator: PropagationCoordinator,
    ):
        self.uow = uow
        self.store = store
        self.coordinator = coordinator

    async def execute(self, target_user_id: UUID, reason: str = "admin") -> Result[Dict[str, Any]]:
        """
        Revoke all sessions for a user.

        Args:
            target_user_id: User whose sessions will be revoked
            reason: Recorded on each revoked session

        Returns:
            Result with count of revoked sessions and propagation directives,
            or Error USER_NOT_FOUND
        """
        async with self.uow:
            target_user = await self.uow.users.get_by_id(target_user_id)
            if not target_user:
                return Return.err(Error(ErrorCode.USER_NOT_FOUND, "User not found"))

            removed = await self.store.revoke_all_for_user(target_user_id, reason=reason)

            directives = []
            for session_id, client_ids in removed.items():
                clients = await self.uow.clients.get_many(client_ids)
                directives.extend(
                    await self.coordinator.plan_logout(session_id, target_user_id, clients)
                )

            audit = AuditEvent(
                user_id=target_user_id,
                action="sessions_revoked",
                event_metadata={
                    "reason": reason,
                    "revoked_count": len(removed),
                    "session_ids": [str(s) for s in removed],
                },
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            outcomes = await self.coordinator.fan_out(directives)

            return Return.ok(
                {
                    "revokedCount": len(removed),
                    "targetUserId": str(target_user_id),
                    "propagation": [
                        view.model_dump(by_alias=True, mode="json")
                        for view in PropagationDirectiveView.build(directives, outcomes)
                    ],
                }
            )
