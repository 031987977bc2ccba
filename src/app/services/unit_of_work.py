from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.client_repository import IClientRepository
from src.app.repositories.propagation_target_repository import (
    IPropagationTargetRepository,
)
from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.app.repositories.session_client_repository import ISessionClientRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    clients: IClientRepository
    sessions: ISessionRepository
    session_clients: ISessionClientRepository
    refresh_tokens: IRefreshTokenRepository
    propagation_targets: IPropagationTargetRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
