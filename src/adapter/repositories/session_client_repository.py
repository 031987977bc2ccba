from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_client_repository import ISessionClientRepository
from src.domain.entities import Session, SessionClient


class SessionClientRepository(ISessionClientRepository):
    """Active client set repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, session_id: UUID, client_id: UUID) -> Optional[SessionClient]:
        """Get the membership row for a (session, client) pair, reloaded from the database"""
        stmt = (
            select(SessionClient)
            .where(
                SessionClient.session_id == session_id,
                SessionClient.client_id == client_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_by_session(self, session_id: UUID) -> List[SessionClient]:
        """Get the active client set of a session, in the order clients joined"""
        stmt = (
            select(SessionClient)
            .where(
                SessionClient.session_id == session_id,
                SessionClient.active == True,  # noqa: E712
            )
            .order_by(SessionClient.added_at)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def is_active(self, session_id: UUID, client_id: UUID, now: datetime) -> bool:
        """
        True if the client is in the session's active set and the session
        is neither revoked nor past its expiry. Single indexed lookup on the
        validation path.
        """
        stmt = (
            select(SessionClient.id)
            .join(Session, Session.id == SessionClient.session_id)
            .where(
                SessionClient.session_id == session_id,
                SessionClient.client_id == client_id,
                SessionClient.active == True,  # noqa: E712
                Session.revoked == False,  # noqa: E712
                Session.expires_at > now,
            )
        )
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def create(self, session_client: SessionClient) -> SessionClient:
        """Add a membership row"""
        self.session.add(session_client)
        await self.session.flush()
        await self.session.refresh(session_client)
        return session_client

    async def update(self, session_client: SessionClient) -> SessionClient:
        """Update a membership row"""
        self.session.add(session_client)
        await self.session.flush()
        await self.session.refresh(session_client)
        return session_client

    async def deactivate_all(self, session_id: UUID, removed_at: datetime) -> int:
        """Remove every client from a session's active set"""
        stmt = (
            update(SessionClient)
            .where(
                SessionClient.session_id == session_id,
                SessionClient.active == True,  # noqa: E712
            )
            .values(active=False, removed_at=removed_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
