"""
Validate Token Use Case

Checks an access token for a client application.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenKind, to_epoch
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ErrorCode
from .dtos import ValidateTokenResponse


class ValidateTokenUseCase:
    """
    Use case for access token validation.

    Business Rules:
    - Signature, kind and expiry are checked without I/O
    - When ``check_revocation`` is on, the token's client must still be in
      its session's active set, so logout takes effect before expiry
    - A caller passing its own clientId only accepts tokens minted for it
    """

    def __init__(self, uow: UnitOfWork, store: SessionStore, check_revocation: bool = True):
        self.uow = uow
        self.store = store
        self.check_revocation = check_revocation

    async def execute(
        self, token: str, client_id: Optional[UUID] = None
    ) -> Result[ValidateTokenResponse]:
        result = self.store.issuer.validate(token, TokenKind.access)
        if result.is_err():
            return result
        claims = result.value

        if client_id is not None and claims.client_id != client_id:
            return Return.err(
                Error(ErrorCode.TOKEN_INVALID, "Token was issued for a different client")
            )

        if self.check_revocation:
            if claims.session_id is None or claims.client_id is None:
                return Return.err(Error(ErrorCode.TOKEN_INVALID, "Token has no session"))
            async with self.uow:
                active = await self.store.is_active(claims.session_id, claims.client_id)
            if not active:
                return Return.err(
                    Error(ErrorCode.TOKEN_REVOKED, "Session is no longer active for this client")
                )

        now = to_epoch(self.store.clock())
        return Return.ok(
            ValidateTokenResponse(
                user_id=claims.sub,
                client_id=claims.cid,
                session_id=claims.sid,
                issued_at=claims.iat,
                expires_at=claims.exp,
                expires_in=max(0, claims.exp - now),
            )
        )
