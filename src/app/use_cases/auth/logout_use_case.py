"""
Logout Use Case

Revokes the session (or a single client's membership) and fans out
clear-cookie directives to every client domain that was removed.
"""

import logging
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenClaims, TokenKind
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, PropagationStatus
from src.domain.errors import ErrorCode
from .dtos import LogoutOutcome, LogoutResponse, PropagationDirectiveView

logger = logging.getLogger(__name__)

SCOPE_GLOBAL = "global"
SCOPE_CLIENT = "client"


class LogoutUseCase:
    """
    Use case for logout.

    Business Rules:
    - The session is identified by an access token, the authority's SSO
      cookie or a refresh token, whichever validates first
    - Revocation is committed before any directive is delivered, so a slow
      or unreachable client domain never leaves the session alive
    - Delivery failures are recorded per target and never fail the logout
    - Logging out an already revoked session succeeds with nothing to clear
    """

    def __init__(
        self,
        uow: UnitOfWork,
        store: SessionStore,
        coordinator: PropagationCoordinator,
        login_page_url: Optional[str] = None,
    ):
        self.uow = uow
        self.store = store
        self.coordinator = coordinator
        self.login_page_url = login_page_url

    async def execute(
        self,
        access_token: Optional[str] = None,
        sso_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        scope: str = SCOPE_GLOBAL,
    ) -> Result[LogoutOutcome]:
        """
        Execute logout use case.

        Args:
            access_token: Bearer access token, if presented
            sso_token: Authority SSO cookie, if presented
            refresh_token: Refresh token cookie, if presented
            scope: "global" to end the whole session, "client" to remove only
                the presenting client

        Returns:
            Result with LogoutOutcome, or Error TOKEN_INVALID when no
            presented credential identifies a session
        """
        claims = self._resolve(access_token, sso_token, refresh_token)
        if claims is None or claims.session_id is None:
            return Return.err(
                Error(ErrorCode.TOKEN_INVALID, "No valid session credential presented")
            )
        if scope == SCOPE_CLIENT and claims.client_id is None:
            return Return.err(
                Error(ErrorCode.TOKEN_INVALID, "Client logout requires a client token")
            )

        session_id = claims.session_id
        async with self.uow:
            if scope == SCOPE_CLIENT:
                result = await self.store.remove_client(session_id, claims.client_id)
                if result.is_err():
                    return result
                removed_ids = [claims.client_id] if result.value else []
            else:
                result = await self.store.revoke_all(session_id, reason="logout")
                if result.is_err():
                    return result
                removed_ids = result.value

            clients = await self.uow.clients.get_many(removed_ids)
            directives = await self.coordinator.plan_logout(
                session_id, claims.user_id, clients
            )

            audit = AuditEvent(
                user_id=claims.user_id,
                client_id=claims.client_id,
                session_id=session_id,
                action="logout",
                event_metadata={
                    "scope": scope,
                    "removed_client_ids": [str(c) for c in removed_ids],
                },
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            outcomes = await self.coordinator.fan_out(directives)

            failed = [o for o in outcomes if o.status == PropagationStatus.failed]
            if failed:
                logger.info(
                    f"Logout of session {session_id} completed with "
                    f"{len(failed)}/{len(outcomes)} undelivered directive(s)"
                )

            return Return.ok(
                LogoutOutcome(
                    response=LogoutResponse(
                        success=True,
                        session_id=str(session_id),
                        redirect_url=self.login_page_url,
                        propagation=PropagationDirectiveView.build(directives, outcomes),
                    ),
                    clear_session_cookie=scope == SCOPE_GLOBAL,
                )
            )

    def _resolve(
        self,
        access_token: Optional[str],
        sso_token: Optional[str],
        refresh_token: Optional[str],
    ) -> Optional[TokenClaims]:
        issuer = self.store.issuer
        for token, kind in (
            (access_token, TokenKind.access),
            (sso_token, TokenKind.sso_session),
            (refresh_token, TokenKind.refresh),
        ):
            if not token:
                continue
            result = issuer.validate(token, kind)
            if result.is_ok():
                return result.value
        return None
