"""
Session Store

Owns session state: the active client set and the refresh tokens of every
client in it. Each public mutation takes the session's lock, applies its
changes and commits before releasing, so mutations on one session are
serialized end to end.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.session_locks import KeyedLock, session_locks
from src.app.services.token_issuer import MintedToken, TokenIssuer, TokenKind
from src.app.services.unit_of_work import UnitOfWork
from src.domain.clock import Clock, utcnow
from src.domain.entities import (
    RefreshToken,
    RefreshTokenStatus,
    Session,
    SessionClient,
)
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenBundle:
    """
    Tokens for one client in one session. Peers refreshed during another
    client's login carry no refresh token: they keep the one they hold.
    """

    user_id: UUID
    session_id: UUID
    client_id: UUID
    access: MintedToken
    refresh: Optional[MintedToken] = None

    @property
    def access_token(self) -> str:
        return self.access.token

    @property
    def refresh_token(self) -> Optional[str]:
        return self.refresh.token if self.refresh else None


@dataclass
class SessionGrant:
    """Result of admitting a client into a session"""

    session: Session
    bundle: TokenBundle
    peers: List[TokenBundle] = field(default_factory=list)
    reused: bool = False


class SessionStore:
    """
    Session lifecycle: create, add/remove client, revoke, refresh.

    Business Rules:
    - A client joins the active set before its tokens are handed out
    - Revocation removes every client and kills every refresh token at once
    - Refresh tokens rotate on every use; replaying a rotated one revokes
      the whole session
    - A revoked session never gains clients again
    """

    def __init__(
        self,
        uow: UnitOfWork,
        issuer: TokenIssuer,
        locks: KeyedLock = session_locks,
        clock: Clock = utcnow,
    ):
        self.uow = uow
        self.issuer = issuer
        self.locks = locks
        self.clock = clock

    def lock(self, session_id: UUID):
        return self.locks.hold(session_id)

    # ------------------------------------------------------------------
    # Public operations (lock + commit)
    # ------------------------------------------------------------------

    async def create(
        self,
        user_id: UUID,
        client_id: UUID,
        existing_session_id: Optional[UUID] = None,
        include_peers: bool = False,
    ) -> Result[SessionGrant]:
        """
        Admit a client for a user, reusing the user's live session if one is
        presented (single sign-on), otherwise starting a new session.

        Args:
            user_id: Authenticated user
            client_id: Client the user is logging into
            existing_session_id: Session carried by the authority's SSO cookie
            include_peers: Also mint tokens for the other clients in the set

        Returns:
            Result with SessionGrant
        """
        if existing_session_id is not None:
            async with self.lock(existing_session_id):
                session = await self.uow.sessions.get_for_update(existing_session_id)
                now = self.clock()
                if session and session.user_id == user_id and session.is_live(now):
                    grant = await self._grant(session, client_id, now, include_peers)
                    grant.reused = True
                    await self.uow.commit()
                    return Return.ok(grant)

        now = self.clock()
        session = await self.uow.sessions.create(
            Session(user_id=user_id, expires_at=now + self.issuer.ttl(TokenKind.refresh))
        )
        async with self.lock(session.id):
            grant = await self._grant(session, client_id, now, include_peers)
            await self.uow.commit()
        return Return.ok(grant)

    async def add_client(self, session_id: UUID, client_id: UUID) -> Result[TokenBundle]:
        """Add a client to a live session's active set and mint its tokens."""
        async with self.lock(session_id):
            session = await self.uow.sessions.get_for_update(session_id)
            now = self.clock()
            if session is None:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))
            if not session.is_live(now):
                return Return.err(
                    Error(ErrorCode.SESSION_REVOKED, "Session is no longer active")
                )
            grant = await self._grant(session, client_id, now, include_peers=False)
            await self.uow.commit()
            return Return.ok(grant.bundle)

    async def remove_client(self, session_id: UUID, client_id: UUID) -> Result[bool]:
        """
        Take one client out of the active set and revoke its refresh tokens.

        Returns:
            Result with True if the client was active
        """
        async with self.lock(session_id):
            session = await self.uow.sessions.get_for_update(session_id)
            if session is None:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))
            membership = await self.uow.session_clients.get(session_id, client_id)
            if membership is None or not membership.active:
                return Return.ok(False)
            membership.active = False
            membership.removed_at = self.clock()
            await self.uow.session_clients.update(membership)
            await self.uow.refresh_tokens.revoke_by_session_and_client(
                session_id, client_id
            )
            await self.uow.commit()
            return Return.ok(True)

    async def revoke_all(
        self, session_id: UUID, reason: str = "logout"
    ) -> Result[List[UUID]]:
        """
        Global logout: empty the active set and revoke every refresh token.

        Idempotent: revoking an already revoked session removes nothing.

        Returns:
            Result with the client IDs that were removed from the active set
        """
        async with self.lock(session_id):
            session = await self.uow.sessions.get_for_update(session_id)
            if session is None:
                return Return.err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))
            removed = await self._revoke(session, reason, self.clock())
            await self.uow.commit()
            return Return.ok(removed)

    async def revoke_all_for_user(
        self, user_id: UUID, reason: str = "admin"
    ) -> Dict[UUID, List[UUID]]:
        """Revoke every live session of a user, one session lock at a time."""
        sessions = await self.uow.sessions.get_active_by_user_id(user_id)
        removed: Dict[UUID, List[UUID]] = {}
        for session in sessions:
            result = await self.revoke_all(session.id, reason=reason)
            if result.is_ok():
                removed[session.id] = result.value
        return removed

    async def is_active(self, session_id: UUID, client_id: UUID) -> bool:
        """Lock-free read used on the validation path."""
        return await self.uow.session_clients.is_active(session_id, client_id, self.clock())

    async def active_clients(self, session_id: UUID) -> List[UUID]:
        memberships = await self.uow.session_clients.get_active_by_session(session_id)
        return [m.client_id for m in memberships]

    async def issue_tokens(self, session_id: UUID, client_id: UUID) -> Result[TokenBundle]:
        """
        Mint an access token and a new refresh token for a client already in
        the active set. Any earlier active refresh token of that client is
        revoked.
        """
        async with self.lock(session_id):
            session = await self.uow.sessions.get_for_update(session_id)
            now = self.clock()
            if session is None or not session.is_live(now):
                return Return.err(
                    Error(ErrorCode.SESSION_REVOKED, "Session is no longer active")
                )
            membership = await self.uow.session_clients.get(session_id, client_id)
            if membership is None or not membership.active:
                return Return.err(
                    Error(ErrorCode.TOKEN_REVOKED, "Client is not active in this session")
                )
            bundle = await self._issue(session, client_id, now)
            await self.uow.commit()
            return Return.ok(bundle)

    async def refresh(self, refresh_token: str) -> Result[TokenBundle]:
        """
        Exchange a refresh token for a new access token and a rotated
        refresh token.

        Returns:
            Result with TokenBundle, or Error TOKEN_INVALID, TOKEN_BAD_SIGNATURE,
            TOKEN_EXPIRED, TOKEN_REVOKED, REFRESH_REUSE_DETECTED
        """
        validated = self.issuer.validate(refresh_token, TokenKind.refresh)
        if validated.is_err():
            return validated
        claims = validated.value
        if claims.session_id is None:
            return Return.err(Error(ErrorCode.TOKEN_INVALID, "Refresh token has no session"))

        async with self.lock(claims.session_id):
            row = await self.uow.refresh_tokens.get_by_id(claims.token_id)
            if row is None or row.session_id != claims.session_id:
                return Return.err(Error(ErrorCode.TOKEN_INVALID, "Unknown refresh token"))

            session = await self.uow.sessions.get_for_update(row.session_id)
            now = self.clock()
            if session is None or session.revoked:
                return Return.err(Error(ErrorCode.TOKEN_REVOKED, "Session has been revoked"))

            if row.status == RefreshTokenStatus.rotated:
                removed = await self._revoke(session, "refresh_reuse", now)
                await self.uow.commit()
                logger.warning(
                    f"Refresh token reuse detected: session={session.id} "
                    f"client={row.client_id}; session revoked"
                )
                return Return.err(
                    Error(
                        ErrorCode.REFRESH_REUSE_DETECTED,
                        "Refresh token was already used; session revoked",
                        details={
                            "session_id": session.id,
                            "user_id": session.user_id,
                            "client_id": row.client_id,
                            "removed_client_ids": removed,
                        },
                    )
                )

            if row.status == RefreshTokenStatus.revoked:
                return Return.err(Error(ErrorCode.TOKEN_REVOKED, "Refresh token has been revoked"))

            if not session.is_live(now) or row.expires_at <= now:
                return Return.err(Error(ErrorCode.TOKEN_EXPIRED, "Session has expired"))

            membership = await self.uow.session_clients.get(session.id, row.client_id)
            if membership is None or not membership.active:
                return Return.err(
                    Error(ErrorCode.TOKEN_REVOKED, "Client is not active in this session")
                )

            # Rotate: old row points at its replacement, new row is the only live one
            new_row = await self.uow.refresh_tokens.create(
                RefreshToken(
                    session_id=session.id,
                    client_id=row.client_id,
                    user_id=session.user_id,
                    expires_at=now + self.issuer.ttl(TokenKind.refresh),
                )
            )
            row.status = RefreshTokenStatus.rotated
            row.used_at = now
            row.replaced_by = new_row.id
            await self.uow.refresh_tokens.update(row)

            session.last_refreshed_at = now
            session.expires_at = new_row.expires_at
            await self.uow.sessions.update(session)

            bundle = self._bundle(session, row.client_id, new_row)
            await self.uow.commit()
            return Return.ok(bundle)

    async def expire_stale(self, limit: int = 100) -> int:
        """
        Garbage-collect expired sessions, each under its own lock, then drop
        refresh-token rows past their expiry.

        Returns:
            Number of sessions revoked
        """
        now = self.clock()
        expired_ids = await self.uow.sessions.get_expired_ids(now, limit=limit)
        for session_id in expired_ids:
            await self.revoke_all(session_id, reason="expired")
        deleted = await self.uow.refresh_tokens.delete_expired(now)
        await self.uow.commit()
        if expired_ids or deleted:
            logger.info(
                f"Session GC: revoked {len(expired_ids)} expired session(s), "
                f"deleted {deleted} refresh token(s)"
            )
        return len(expired_ids)

    # ------------------------------------------------------------------
    # Internals: caller holds the session lock and commits
    # ------------------------------------------------------------------

    async def _grant(
        self, session: Session, client_id: UUID, now: datetime, include_peers: bool
    ) -> SessionGrant:
        await self._add_client(session, client_id, now)
        bundle = await self._issue(session, client_id, now)
        peers = []
        if include_peers:
            for peer_id in await self.active_clients(session.id):
                if peer_id != client_id:
                    peers.append(self._peer_bundle(session, peer_id))
        return SessionGrant(session=session, bundle=bundle, peers=peers)

    async def _add_client(self, session: Session, client_id: UUID, now: datetime) -> None:
        membership = await self.uow.session_clients.get(session.id, client_id)
        if membership is None:
            await self.uow.session_clients.create(
                SessionClient(
                    session_id=session.id,
                    client_id=client_id,
                    user_id=session.user_id,
                    added_at=now,
                )
            )
        elif not membership.active:
            membership.active = True
            membership.added_at = now
            membership.removed_at = None
            await self.uow.session_clients.update(membership)

    async def _issue(self, session: Session, client_id: UUID, now: datetime) -> TokenBundle:
        # Earlier refresh tokens of this client die quietly (no reuse alarm)
        await self.uow.refresh_tokens.revoke_by_session_and_client(session.id, client_id)
        row = await self.uow.refresh_tokens.create(
            RefreshToken(
                session_id=session.id,
                client_id=client_id,
                user_id=session.user_id,
                expires_at=now + self.issuer.ttl(TokenKind.refresh),
            )
        )
        # The session outlives every refresh token it hands out
        if row.expires_at > session.expires_at:
            session.expires_at = row.expires_at
            await self.uow.sessions.update(session)
        return self._bundle(session, client_id, row)

    def _peer_bundle(self, session: Session, client_id: UUID) -> TokenBundle:
        # Access token only; the peer keeps the refresh token it holds
        access = self.issuer.mint(TokenKind.access, self._claims(session, client_id))
        return TokenBundle(
            user_id=session.user_id,
            session_id=session.id,
            client_id=client_id,
            access=access,
        )

    async def _revoke(self, session: Session, reason: str, now: datetime) -> List[UUID]:
        if session.revoked:
            return []
        removed = await self.active_clients(session.id)
        await self.uow.session_clients.deactivate_all(session.id, now)
        await self.uow.refresh_tokens.revoke_by_session(session.id)
        session.revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
        await self.uow.sessions.update(session)
        return removed

    def _claims(self, session: Session, client_id: UUID) -> Dict[str, str]:
        return {
            "sub": str(session.user_id),
            "cid": str(client_id),
            "sid": str(session.id),
        }

    def _bundle(self, session: Session, client_id: UUID, row: RefreshToken) -> TokenBundle:
        claims = self._claims(session, client_id)
        access = self.issuer.mint(TokenKind.access, claims)
        refresh = self.issuer.mint(
            TokenKind.refresh, claims, expires_at=row.expires_at, jti=str(row.id)
        )
        return TokenBundle(
            user_id=session.user_id,
            session_id=session.id,
            client_id=client_id,
            access=access,
            refresh=refresh,
        )
