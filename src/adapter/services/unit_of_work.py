from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.client_repository import ClientRepository
from src.adapter.repositories.propagation_target_repository import (
    PropagationTargetRepository,
)
from src.adapter.repositories.refresh_token_repository import RefreshTokenRepository
from src.adapter.repositories.session_client_repository import SessionClientRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.repositories.user_repository import UserRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.clients = ClientRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.session_clients = SessionClientRepository(self.session)
        self.refresh_tokens = RefreshTokenRepository(self.session)
        self.propagation_targets = PropagationTargetRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
