"""
SSO Login Use Case

Handles GET /login?clientId=&callBackURL=. A browser that already holds a
live authority session is signed into the client silently; anyone else is
sent to the login page.
"""

from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.client_registry import ClientRegistry, callback_matches
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenKind
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.errors import ErrorCode
from .dtos import SsoLoginOutcome


class SsoLoginUseCase:
    """
    Use case for the redirect-based single sign-on entry point.

    Business Rules:
    - callBackURL must match the client's registered origin, otherwise no
      redirect happens at all
    - A session only gains the client while it is live (checked under the
      session lock, so a concurrent logout wins cleanly)
    - With a browser relay the user is sent through the client's cookie
      endpoint first; with back-channel delivery the cookies are set before
      the redirect
    """

    def __init__(
        self,
        uow: UnitOfWork,
        registry: ClientRegistry,
        store: SessionStore,
        coordinator: PropagationCoordinator,
        login_page_url: str,
    ):
        self.uow = uow
        self.registry = registry
        self.store = store
        self.coordinator = coordinator
        self.login_page_url = login_page_url

    async def execute(
        self, client_id: UUID, callback_url: str, sso_token: Optional[str] = None
    ) -> Result[SsoLoginOutcome]:
        async with self.uow:
            client_result = await self.registry.lookup(client_id)
            if client_result.is_err():
                return client_result
            client = client_result.value

            if not callback_matches(client.base_domain, callback_url):
                return Return.err(
                    Error(
                        ErrorCode.INVALID_CALLBACK,
                        "callBackURL does not match the client's registered domain",
                    )
                )

            login_redirect = SsoLoginOutcome(
                redirect_url=self._login_page(client_id, callback_url)
            )

            if not sso_token:
                return Return.ok(login_redirect)
            claims_result = self.store.issuer.validate(sso_token, TokenKind.sso_session)
            if claims_result.is_err() or claims_result.value.session_id is None:
                return Return.ok(login_redirect)
            claims = claims_result.value

            added = await self.store.add_client(claims.session_id, client.id)
            if added.is_err():
                return Return.ok(login_redirect)
            bundle = added.value

            directive = await self.coordinator.plan_set_cookie(client, bundle, primary=True)
            audit = AuditEvent(
                user_id=bundle.user_id,
                client_id=client.id,
                session_id=bundle.session_id,
                action="sso_login",
                event_metadata={"callback_origin": client.base_domain},
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            await self.coordinator.fan_out([directive])

            if self.coordinator.awaits_acknowledgement:
                redirect_url = f"{directive.url}?" + urlencode(
                    {
                        "payload": directive.payload,
                        "target": str(directive.target_id),
                        "next": callback_url,
                    }
                )
            else:
                redirect_url = callback_url

            return Return.ok(SsoLoginOutcome(redirect_url=redirect_url, authenticated=True))

    def _login_page(self, client_id: UUID, callback_url: str) -> str:
        separator = "&" if "?" in self.login_page_url else "?"
        return (
            f"{self.login_page_url}{separator}"
            + urlencode({"clientId": str(client_id), "callBackURL": callback_url})
        )
