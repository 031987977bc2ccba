from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Client


class IClientRepository(ABC):
    """Client repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, client_id: UUID) -> Optional[Client]:
        """Get client by ID, active or not"""
        pass

    @abstractmethod
    async def get_many(self, client_ids: List[UUID]) -> List[Client]:
        """Get several clients by ID"""
        pass

    @abstractmethod
    async def list(self, include_inactive: bool = False) -> List[Client]:
        """List registered clients"""
        pass

    @abstractmethod
    async def create(self, client: Client) -> Client:
        """Register a new client"""
        pass

    @abstractmethod
    async def update(self, client: Client) -> Client:
        """Update existing client"""
        pass
