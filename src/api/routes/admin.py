"""
Admin API Routes - System Administration Endpoints

Client registry administration, propagation inspection/retry and
user-wide session revocation. Authentication is via Admin API Key,
not end-user tokens.
"""

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.client_registry import ClientRegistry
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.clients import (
    ChangeClientStatusUseCase,
    ClientListResponse,
    ClientResponse,
    GetClientUseCase,
    ListClientsUseCase,
    RegisterClientCommand,
    RegisterClientUseCase,
    UpdateClientCommand,
    UpdateClientUseCase,
)
from src.app.use_cases.propagation import (
    ListPropagationTargetsUseCase,
    PropagationTargetInfo,
    PropagationTargetListResponse,
    RetryPropagationUseCase,
)
from src.app.use_cases.users import RevokeSessionsUseCase
from src.depends import (
    get_client_registry,
    get_propagation_coordinator,
    get_session_store,
    get_unit_of_work,
)
from src.domain.errors import ErrorCode

router = APIRouter(
    prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_api_key)]
)


# ============================================================================
# Client registry
# ============================================================================


@router.post("/clients", status_code=status.HTTP_201_CREATED, response_model=ClientResponse)
async def register_client(
    request: RegisterClientCommand,
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """
    Register Client

    Requires: X-Admin-API-Key header

    Raises:
        - 400 Bad Request: INVALID_DOMAIN (baseDomain is not an http(s) origin)
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = RegisterClientUseCase(uow, registry)
    result = await use_case.execute(request)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.INVALID_DOMAIN:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


@router.get("/clients", status_code=status.HTTP_200_OK, response_model=ClientListResponse)
async def list_clients(
    include_inactive: bool = Query(False, alias="includeInactive"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """List registered clients, oldest first."""
    use_case = ListClientsUseCase(uow, registry)
    result = await use_case.execute(include_inactive=include_inactive)
    return result.value


@router.get(
    "/clients/{client_id}", status_code=status.HTTP_200_OK, response_model=ClientResponse
)
async def get_client(
    client_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """
    Get Client (active or deactivated)

    Raises:
        - 404 Not Found: CLIENT_NOT_FOUND
    """
    use_case = GetClientUseCase(uow, registry)
    result = await use_case.execute(client_id, include_inactive=True)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.CLIENT_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


@router.patch(
    "/clients/{client_id}", status_code=status.HTTP_200_OK, response_model=ClientResponse
)
async def update_client(
    client_id: UUID,
    request: UpdateClientCommand,
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """
    Update Client

    Partial update of display metadata, baseDomain or cookie endpoint paths.

    Raises:
        - 400 Bad Request: INVALID_DOMAIN
        - 404 Not Found: CLIENT_NOT_FOUND
    """
    use_case = UpdateClientUseCase(uow, registry)
    result = await use_case.execute(client_id, request)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.CLIENT_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == ErrorCode.INVALID_DOMAIN:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


async def _change_client_status(
    client_id: UUID, active: bool, uow: UnitOfWork, registry: ClientRegistry
):
    use_case = ChangeClientStatusUseCase(uow, registry)
    result = await use_case.execute(client_id, active=active)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.CLIENT_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


@router.post(
    "/clients/{client_id}/deactivate",
    status_code=status.HTTP_200_OK,
    response_model=ClientResponse,
)
async def deactivate_client(
    client_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """
    Deactivate Client

    Blocks new logins for the client. The row is kept so existing sessions
    can still be cleaned up against its domain.
    """
    return await _change_client_status(client_id, False, uow, registry)


@router.post(
    "/clients/{client_id}/reactivate",
    status_code=status.HTTP_200_OK,
    response_model=ClientResponse,
)
async def reactivate_client(
    client_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
):
    """Reactivate Client"""
    return await _change_client_status(client_id, True, uow, registry)


# ============================================================================
# Propagation
# ============================================================================


@router.get(
    "/propagation",
    status_code=status.HTTP_200_OK,
    response_model=PropagationTargetListResponse,
)
async def list_propagation_targets(
    session_id: UUID = Query(..., alias="sessionId"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    List Propagation Targets of a Session

    Raises:
        - 404 Not Found: SESSION_NOT_FOUND
    """
    use_case = ListPropagationTargetsUseCase(uow, coordinator)
    result = await use_case.execute(session_id)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.SESSION_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


@router.post(
    "/propagation/{target_id}/retry",
    status_code=status.HTTP_200_OK,
    response_model=PropagationTargetInfo,
)
async def retry_propagation_target(
    target_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    Retry Failed Directive

    Explicitly re-delivers one failed directive. Never triggered automatically.

    Raises:
        - 404 Not Found: TARGET_NOT_FOUND
        - 409 Conflict: TARGET_NOT_RETRYABLE (not failed, client deactivated,
          or client no longer in the session)
    """
    use_case = RetryPropagationUseCase(uow, coordinator, store)
    result = await use_case.execute(target_id)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.TARGET_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        if error.code == ErrorCode.TARGET_NOT_RETRYABLE:
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value


# ============================================================================
# Users
# ============================================================================


@router.post("/users/{user_id}/revoke-sessions", status_code=status.HTTP_200_OK)
async def revoke_user_sessions(
    user_id: UUID,
    uow: UnitOfWork = Depends(get_unit_of_work),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
) -> Dict[str, Any]:
    """
    Revoke All Sessions of a User

    Global logout through the user index, with clear-cookie fan-out to every
    client of every revoked session.

    Raises:
        - 404 Not Found: USER_NOT_FOUND
    """
    use_case = RevokeSessionsUseCase(uow, store, coordinator)
    result = await use_case.execute(user_id)

    if result.is_err():
        error = result.error
        if error.code == ErrorCode.USER_NOT_FOUND:
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
