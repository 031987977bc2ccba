from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.client_repository import IClientRepository
from src.domain.entities import Client


class ClientRepository(IClientRepository):
    """Client repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, client_id: UUID) -> Optional[Client]:
        """Get client by ID, active or not"""
        stmt = select(Client).where(Client.id == client_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_many(self, client_ids: List[UUID]) -> List[Client]:
        """Get several clients by ID"""
        if not client_ids:
            return []
        stmt = select(Client).where(Client.id.in_(client_ids))
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list(self, include_inactive: bool = False) -> List[Client]:
        """List registered clients, oldest first"""
        stmt = select(Client)
        if not include_inactive:
            stmt = stmt.where(Client.active == True)  # noqa: E712
        stmt = stmt.order_by(Client.created_at)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, client: Client) -> Client:
        """Register a new client"""
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client

    async def update(self, client: Client) -> Client:
        """Update existing client"""
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client
