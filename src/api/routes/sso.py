"""
SSO Redirect Route

Browser entry point: GET /login?clientId=&callBackURL=
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Query, status
from fastapi.responses import RedirectResponse

from config import ApplicationConfig
from src.api.error import parse_client_id, raise_for_error
from src.app.services.client_registry import ClientRegistry
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import SsoLoginUseCase
from src.depends import (
    get_client_registry,
    get_propagation_coordinator,
    get_session_store,
    get_unit_of_work,
)
from src.domain.errors import ErrorCode

router = APIRouter(tags=["SSO"])


@router.get("/login", status_code=status.HTTP_303_SEE_OTHER)
async def sso_login(
    client_id: Optional[str] = Query(None, alias="clientId"),
    callback_url: str = Query(..., alias="callBackURL"),
    sso_cookie: Optional[str] = Cookie(None, alias=ApplicationConfig.SSO_COOKIE_NAME),
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    Single Sign-On Redirect

    With a live authority session the client joins it silently and the
    browser lands on callBackURL with the client's cookies set (or on the
    client's cookie endpoint first, when cookies travel through the browser).
    Without one the browser is sent to the login page.

    Raises:
        - 400 Bad Request: Unknown/inactive client or callBackURL mismatch
          (no redirect is issued)
    """
    use_case = SsoLoginUseCase(
        uow, registry, store, coordinator, ApplicationConfig.LOGIN_PAGE_URL
    )
    result = await use_case.execute(parse_client_id(client_id), callback_url, sso_cookie)

    if result.is_err():
        raise_for_error(
            result.error,
            {
                ErrorCode.INVALID_CLIENT: status.HTTP_400_BAD_REQUEST,
                ErrorCode.INVALID_CALLBACK: status.HTTP_400_BAD_REQUEST,
            },
        )

    return RedirectResponse(result.value.redirect_url, status_code=status.HTTP_303_SEE_OTHER)
