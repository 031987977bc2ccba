"""
Update Client Use Cases

Metadata updates and soft (de)activation of registered clients.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.client_registry import ClientRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from .dtos import ClientInfo, ClientResponse, UpdateClientCommand


class UpdateClientUseCase:
    """
    Use case for updating a client's metadata.

    Business Rules:
    - clientId is immutable
    - A new baseDomain is normalized and validated like at registration
    """

    def __init__(self, uow: UnitOfWork, registry: ClientRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(
        self, client_id: UUID, command: UpdateClientCommand
    ) -> Result[ClientResponse]:
        async with self.uow:
            changes = command.changes()
            result = await self.registry.update(client_id, changes)
            if result.is_err():
                return result
            client = result.value

            audit = AuditEvent(
                client_id=client.id,
                action="client_updated",
                event_metadata={"fields": sorted(changes.keys())},
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            return Return.ok(ClientResponse(client=ClientInfo.from_entity(client)))


class ChangeClientStatusUseCase:
    """
    Use case for deactivating and reactivating clients.

    Business Rules:
    - Clients are never deleted; deactivation blocks new logins only
    - Existing sessions keep resolving the client so logout can still
      clear its cookies
    - Changing to the current status is a no-op (no audit event)
    """

    def __init__(self, uow: UnitOfWork, registry: ClientRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(self, client_id: UUID, active: bool) -> Result[ClientResponse]:
        async with self.uow:
            found = await self.registry.get(client_id)
            if found.is_err():
                return found
            was_active = found.value.active

            if active:
                result = await self.registry.reactivate(client_id)
            else:
                result = await self.registry.deactivate(client_id)
            if result.is_err():
                return result
            client = result.value

            if was_active != active:
                audit = AuditEvent(
                    client_id=client.id,
                    action="client_reactivated" if active else "client_deactivated",
                    event_metadata={"base_domain": client.base_domain},
                )
                await self.uow.audit_events.create(audit)
                await self.uow.commit()

            return Return.ok(ClientResponse(client=ClientInfo.from_entity(client)))
