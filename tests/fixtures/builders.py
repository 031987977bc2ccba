from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from src.app.services.directive_dispatcher import DispatchOutcome, PropagationDirective
from src.app.services.session_store import TokenBundle
from src.app.services.token_issuer import TokenIssuer, TokenKind
from src.domain.entities import (
    Client,
    PropagationAction,
    PropagationStatus,
    Session,
)


def make_client(name: str = "app-a", active: bool = True) -> Client:
    return Client(
        id=uuid4(),
        name=name,
        base_domain=f"https://{name}.example.com",
        set_cookie_path="/sso/cookies",
        clear_cookie_path="/sso/cookies/clear",
        active=active,
    )


def make_session(user_id: UUID, now: datetime) -> Session:
    return Session(id=uuid4(), user_id=user_id, expires_at=now + timedelta(days=30))


def make_bundle(
    issuer: TokenIssuer, user_id: UUID, session_id: UUID, client_id: UUID
) -> TokenBundle:
    claims = {"sub": str(user_id), "cid": str(client_id), "sid": str(session_id)}
    return TokenBundle(
        user_id=user_id,
        session_id=session_id,
        client_id=client_id,
        access=issuer.mint(TokenKind.access, claims),
        refresh=issuer.mint(TokenKind.refresh, claims),
    )


def make_directive(
    client: Client,
    session_id: UUID,
    action: PropagationAction = PropagationAction.set_cookie,
    primary: bool = False,
) -> PropagationDirective:
    url = client.set_cookie_url if action == PropagationAction.set_cookie else client.clear_cookie_url
    return PropagationDirective(
        target_id=uuid4(),
        session_id=session_id,
        client_id=client.id,
        action=action,
        url=url,
        payload="signed-payload",
        expires_at=datetime(2030, 1, 1, 12, 2),
        primary=primary,
    )


def outcome_for(
    directive: PropagationDirective,
    status: PropagationStatus,
    error_code: Optional[str] = None,
) -> DispatchOutcome:
    return DispatchOutcome(
        target_id=directive.target_id,
        status=status,
        error_code=error_code,
        error="unreachable" if error_code else None,
    )
