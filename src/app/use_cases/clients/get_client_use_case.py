"""
Get Client Use Case

Registry lookup by clientId.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.client_registry import ClientRegistry
from src.app.services.unit_of_work import UnitOfWork
from .dtos import ClientInfo, ClientListResponse, ClientResponse


class GetClientUseCase:
    """
    Use case for client lookup.

    Business Rules:
    - Public lookups only see active clients (INVALID_CLIENT otherwise)
    - Administrative lookups also see deactivated clients
    """

    def __init__(self, uow: UnitOfWork, registry: ClientRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(
        self, client_id: UUID, include_inactive: bool = False
    ) -> Result[ClientResponse]:
        async with self.uow:
            if include_inactive:
                result = await self.registry.get(client_id)
            else:
                result = await self.registry.lookup(client_id)
            if result.is_err():
                return result
            return Return.ok(ClientResponse(client=ClientInfo.from_entity(result.value)))


class ListClientsUseCase:
    def __init__(self, uow: UnitOfWork, registry: ClientRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(self, include_inactive: bool = False) -> Result[ClientListResponse]:
        async with self.uow:
            clients = await self.registry.list(include_inactive=include_inactive)
            return Return.ok(
                ClientListResponse(clients=[ClientInfo.from_entity(c) for c in clients])
            )
