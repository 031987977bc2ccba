from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import SessionClient


class ISessionClientRepository(ABC):
    """Active client set repository interface - application layer"""

    @abstractmethod
    async def get(self, session_id: UUID, client_id: UUID) -> Optional[SessionClient]:
        """Get the membership row for a (session, client) pair"""
        pass

    @abstractmethod
    async def get_active_by_session(self, session_id: UUID) -> List[SessionClient]:
        """Get the active client set of a session"""
        pass

    @abstractmethod
    async def is_active(self, session_id: UUID, client_id: UUID, now: datetime) -> bool:
        """True if client is in the session's active set and the session is live at ``now``"""
        pass

    @abstractmethod
    async def create(self, session_client: SessionClient) -> SessionClient:
        """Add a membership row"""
        pass

    @abstractmethod
    async def update(self, session_client: SessionClient) -> SessionClient:
        """Update a membership row"""
        pass

    @abstractmethod
    async def deactivate_all(self, session_id: UUID, removed_at: datetime) -> int:
        """Remove every client from a session's active set. Returns count."""
        pass
