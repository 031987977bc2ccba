from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.domain.entities import RefreshToken, RefreshTokenStatus


class RefreshTokenRepository(IRefreshTokenRepository):
    """Refresh token repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, token_id: UUID) -> Optional[RefreshToken]:
        """Get refresh token row by jti, reloaded from the database"""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.id == token_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, token: RefreshToken) -> RefreshToken:
        """Store a newly minted refresh token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def update(self, token: RefreshToken) -> RefreshToken:
        """Update refresh token state"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def revoke_by_session(self, session_id: UUID) -> int:
        """Revoke all active refresh tokens of a session"""
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.session_id == session_id,
                RefreshToken.status == RefreshTokenStatus.active,
            )
            .values(status=RefreshTokenStatus.revoked)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_by_session_and_client(self, session_id: UUID, client_id: UUID) -> int:
        """Revoke active refresh tokens of one client in a session"""
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.session_id == session_id,
                RefreshToken.client_id == client_id,
                RefreshToken.status == RefreshTokenStatus.active,
            )
            .values(status=RefreshTokenStatus.revoked)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_expired(self, now: datetime) -> int:
        """Delete rows past expires_at"""
        stmt = delete(RefreshToken).where(RefreshToken.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
