from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.propagation_target_repository import (
    IPropagationTargetRepository,
)
from src.domain.entities import PropagationStatus, PropagationTarget


class PropagationTargetRepository(IPropagationTargetRepository):
    """Propagation target repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, target_id: UUID) -> Optional[PropagationTarget]:
        """Get target by ID"""
        stmt = select(PropagationTarget).where(PropagationTarget.id == target_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_session(self, session_id: UUID) -> List[PropagationTarget]:
        """All targets created for a session, oldest first"""
        stmt = (
            select(PropagationTarget)
            .where(PropagationTarget.session_id == session_id)
            .order_by(PropagationTarget.created_at)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, target: PropagationTarget) -> PropagationTarget:
        """Create a new target"""
        self.session.add(target)
        await self.session.flush()
        await self.session.refresh(target)
        return target

    async def update(self, target: PropagationTarget) -> PropagationTarget:
        """Update target state"""
        self.session.add(target)
        await self.session.flush()
        await self.session.refresh(target)
        return target

    async def get_overdue(self, now: datetime, limit: int = 100) -> List[PropagationTarget]:
        """Dispatched targets whose acknowledgment deadline has passed"""
        stmt = (
            select(PropagationTarget)
            .where(
                PropagationTarget.status == PropagationStatus.dispatched,
                PropagationTarget.ack_deadline_at <= now,
            )
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
