"""
Refresh Token Use Case

Handles access token refresh with rotate-on-use refresh tokens and
session-wide revocation when a rotated token is replayed.
"""

import logging

from libs.result import Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.errors import ErrorCode
from .dtos import RefreshTokenResponse

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Refresh token rotation: every use returns a new refresh token and
      retires the presented one
    - Session must be live and the client still in its active set
    - Replaying a rotated token revokes the whole session and clears
      cookies on every client that was in it
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

    async def execute(self, refresh_token: str) -> Result[RefreshTokenResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate

        Returns:
            Result with RefreshTokenResponse containing new tokens, or Error
        """
        async with self.uow:
            result = await self.store.refresh(refresh_token)

            if result.is_err():
                if result.error.code == ErrorCode.REFRESH_REUSE_DETECTED:
                    await self._contain_reuse(result.error.details)
                return result

            bundle = result.value
            audit = AuditEvent(
                user_id=bundle.user_id,
                client_id=bundle.client_id,
                session_id=bundle.session_id,
                action="token_refresh",
                event_metadata={"refresh_token_id": bundle.refresh.jti},
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            now = self.store.clock()
            return Return.ok(
                RefreshTokenResponse(
                    access_token=bundle.access_token,
                    expires_in=bundle.access.expires_in(now),
                    refresh_token=bundle.refresh_token,
                    refresh_expires_in=bundle.refresh.expires_in(now),
                )
            )

    async def _contain_reuse(self, details: dict) -> None:
        session_id = details["session_id"]
        user_id = details["user_id"]
        removed = details.get("removed_client_ids", [])

        clients = await self.uow.clients.get_many(removed)
        directives = await self.coordinator.plan_logout(session_id, user_id, clients)
        audit = AuditEvent(
            user_id=user_id,
            client_id=details.get("client_id"),
            session_id=session_id,
            action="refresh_reuse_detected",
            event_metadata={"removed_client_ids": [str(c) for c in removed]},
        )
        await self.uow.audit_events.create(audit)
        await self.uow.commit()

        await self.coordinator.fan_out(directives)
