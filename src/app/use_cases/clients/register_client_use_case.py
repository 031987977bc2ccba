"""
Register Client Use Case

Adds an application to the client registry.
"""

from libs.result import Result, Return
from src.app.services.client_registry import ClientRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from .dtos import ClientInfo, ClientResponse, RegisterClientCommand


class RegisterClientUseCase:
    """
    Use case for client registration.

    Business Rules:
    - baseDomain must be an http(s) origin; it is stored normalized
    - Cookie endpoint paths default from configuration
    - Registration is audit-logged
    """

    def __init__(self, uow: UnitOfWork, registry: ClientRegistry):
        self.uow = uow
        self.registry = registry

    async def execute(self, command: RegisterClientCommand) -> Result[ClientResponse]:
        async with self.uow:
            result = await self.registry.register(
                name=command.name,
                base_domain=command.base_domain,
                platform=command.platform,
                description=command.description,
                logo_url=command.logo_url,
                set_cookie_path=command.set_cookie_path,
                clear_cookie_path=command.clear_cookie_path,
            )
            if result.is_err():
                return result
            client = result.value

            audit = AuditEvent(
                client_id=client.id,
                action="client_registered",
                event_metadata={"name": client.name, "base_domain": client.base_domain},
            )
            await self.uow.audit_events.create(audit)
            await self.uow.commit()

            return Return.ok(ClientResponse(client=ClientInfo.from_entity(client)))
