from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import RefreshToken


class IRefreshTokenRepository(ABC):
    """Refresh token repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, token_id: UUID) -> Optional[RefreshToken]:
        """Get refresh token row by jti"""
        pass

    @abstractmethod
    async def create(self, token: RefreshToken) -> RefreshToken:
        """Store a newly minted refresh token"""
        pass

    @abstractmethod
    async def update(self, token: RefreshToken) -> RefreshToken:
        """Update refresh token state"""
        pass

    @abstractmethod
    async def revoke_by_session(self, session_id: UUID) -> int:
        """Revoke all active refresh tokens of a session. Returns count."""
        pass

    @abstractmethod
    async def revoke_by_session_and_client(self, session_id: UUID, client_id: UUID) -> int:
        """Revoke active refresh tokens of one client in a session. Returns count."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete rows past expires_at. Returns count."""
        pass
