from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_for_update(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID with a row lock (no-op on SQLite), reloaded from the database"""
        stmt = (
            select(Session)
            .where(Session.id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_by_user_id(self, user_id: UUID) -> List[Session]:
        """Get all non-revoked sessions for a user"""
        stmt = select(Session).where(
            Session.user_id == user_id, Session.revoked == False  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_obj: Session) -> Session:
        """Update existing session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_expired_ids(self, now: datetime, limit: int = 100) -> List[UUID]:
        """IDs of sessions past expires_at that are not yet revoked"""
        stmt = (
            select(Session.id)
            .where(Session.revoked == False, Session.expires_at <= now)  # noqa: E712
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
