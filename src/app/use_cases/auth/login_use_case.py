"""
Login Use Case

Exchanges credentials for a session and client tokens, then propagates
set-cookie directives to the requesting client and its peers.
"""

import logging
from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.client_registry import ClientRegistry, callback_matches
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenKind
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.errors import ErrorCode
from .dtos import (
    LoginCommand,
    LoginOutcome,
    LoginResponse,
    PropagationDirectiveView,
    SessionCookie,
)

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for credential login and token issuance.

    Business Rules:
    - clientId and callBackURL are validated before credentials are checked,
      so no token is ever minted for a rejected callback
    - Credential failures are uniform (never reveal whether a username exists)
    - A live SSO session of the same user is reused; the client joins its
      active set
    - The requesting client's directive is dispatched before the response;
      peers are best-effort
    - Updates user.last_login_at and writes a login audit event
    """

    def __init__(
        self,
        uow: UnitOfWork,
        registry: ClientRegistry,
        verifier: CredentialVerifier,
        store: SessionStore,
        coordinator: PropagationCoordinator,
    ):
        self.uow = uow
        self.registry = registry
        self.verifier = verifier
        self.store = store
        self.coordinator = coordinator

    async def execute(self, command: LoginCommand) -> Result[LoginOutcome]:
        """
        Execute login use case.

        Args:
            command: LoginCommand with clientId, credentials and optional
                callback, second factor, device and SSO cookie

        Returns:
            Result with LoginOutcome, or Error INVALID_CLIENT, INVALID_CALLBACK,
            INVALID_CREDENTIALS, SECOND_FACTOR_REQUIRED
        """
        async with self.uow:
            client_result = await self.registry.lookup(command.client_id)
            if client_result.is_err():
                return client_result
            client = client_result.value

            if command.callback_url is not None and not callback_matches(
                client.base_domain, command.callback_url
            ):
                logger.warning(f"Rejected callback for client {client.id}")
                return Return.err(
                    Error(
                        ErrorCode.INVALID_CALLBACK,
                        "callBackURL does not match the client's registered domain",
                    )
                )

            verified = await self.verifier.verify(
                command.username,
                command.password,
                otp_code=command.otp_code,
                trusted_device_token=command.trusted_device_token,
                device_id=command.device_id,
            )
            if verified.is_err():
                return verified
            principal = verified.value
            user = principal.user

            grant_result = await self.store.create(
                user.id,
                client.id,
                existing_session_id=self._sso_session_id(command.sso_token, user.id),
                include_peers=True,
            )
            if grant_result.is_err():
                return grant_result
            grant = grant_result.value
            bundle = grant.bundle

            user.last_login_at = self.store.clock()
            await self.uow.users.update(user)

            trusted_device = None
            if (
                command.trust_device
                and command.device_id
                and principal.second_factor == "totp"
            ):
                trusted_device = self.verifier.issue_trusted_device_token(
                    user.id, command.device_id
                )

            peer_clients = {
                c.id: c
                for c in await self.uow.clients.get_many([p.client_id for p in grant.peers])
                if c.active
            }
            directives = await self.coordinator.plan_login(
                (client, bundle),
                [(peer_clients[p.client_id], p) for p in grant.peers if p.client_id in peer_clients],
            )

            audit = AuditEvent(
                user_id=user.id,
                client_id=client.id,
                session_id=grant.session.id,
                action="login",
                event_metadata={
                    "username": user.username,
                    "sso_session_reused": grant.reused,
                    "second_factor": principal.second_factor,
                    "peer_count": len(directives) - 1,
                },
            )
            await self.uow.audit_events.create(audit)

            await self.uow.commit()

            # Requesting client first; in relay mode the browser carries them all
            if self.coordinator.awaits_acknowledgement:
                dispatched, deferred = directives, []
            else:
                dispatched, deferred = directives[:1], directives[1:]
            outcomes = await self.coordinator.fan_out(dispatched)

            now = self.store.clock()
            sso_cookie = self.store.issuer.mint(
                TokenKind.sso_session,
                {"sub": str(user.id), "sid": str(grant.session.id)},
                expires_at=grant.session.expires_at,
            )

            response = LoginResponse(
                access_token=bundle.access_token,
                refresh_token=bundle.refresh_token,
                expires_in=bundle.access.expires_in(now),
                session_id=str(grant.session.id),
                user_id=str(user.id),
                client_id=str(client.id),
                trusted_device_token=trusted_device.token if trusted_device else None,
                redirect_url=command.callback_url,
                propagation=PropagationDirectiveView.build(directives, outcomes),
            )
            return Return.ok(
                LoginOutcome(
                    response=response,
                    session_cookie=SessionCookie(
                        token=sso_cookie.token, expires_at=sso_cookie.expires_at
                    ),
                    trusted_device_expires_at=(
                        trusted_device.expires_at if trusted_device else None
                    ),
                    deferred=deferred,
                )
            )

    def _sso_session_id(self, sso_token: Optional[str], user_id: UUID) -> Optional[UUID]:
        if not sso_token:
            return None
        result = self.store.issuer.validate(sso_token, TokenKind.sso_session)
        if result.is_err() or result.value.sub != str(user_id):
            return None
        return result.value.session_id
