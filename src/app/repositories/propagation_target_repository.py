from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import PropagationTarget


class IPropagationTargetRepository(ABC):
    """Propagation target repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, target_id: UUID) -> Optional[PropagationTarget]:
        """Get target by ID"""
        pass

    @abstractmethod
    async def get_by_session(self, session_id: UUID) -> List[PropagationTarget]:
        """All targets created for a session, oldest first"""
        pass

    @abstractmethod
    async def create(self, target: PropagationTarget) -> PropagationTarget:
        """Create a new target"""
        pass

    @abstractmethod
    async def update(self, target: PropagationTarget) -> PropagationTarget:
        """Update target state"""
        pass

    @abstractmethod
    async def get_overdue(self, now: datetime, limit: int = 100) -> List[PropagationTarget]:
        """Dispatched targets whose acknowledgment deadline has passed"""
        pass
