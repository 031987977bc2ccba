"""
Client API Routes

Public client registry lookup.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.error import parse_client_id, raise_for_error
from src.app.services.client_registry import ClientRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.clients import ClientResponse, GetClientUseCase
from src.depends import get_client_registry, get_unit_of_work
from src.domain.errors import ErrorCode

router = APIRouter(tags=["Client"])


@router.get("/client", status_code=status.HTTP_200_OK, response_model=ClientResponse)
async def get_client(
    client_id: Optional[str] = Query(None, alias="clientId"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """
    Client Lookup

    Returns the registered metadata of an active client.

    Raises:
        - 404 Not Found: Unknown or deactivated client
    """
    client_uuid = parse_client_id(client_id, status_code=status.HTTP_404_NOT_FOUND)

    use_case = GetClientUseCase(uow, registry)
    result = await use_case.execute(client_uuid)

    if result.is_err():
        raise_for_error(result.error, {ErrorCode.INVALID_CLIENT: status.HTTP_404_NOT_FOUND})

    return result.value
