"""
Authentication API Routes

Login, logout, token validation and refresh for client applications.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Cookie, Depends, Query, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import Field

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError, TOKEN_ERROR_STATUS, parse_client_id, raise_for_error
from src.app.services.client_registry import ClientRegistry
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.directive_dispatcher import IDirectiveDispatcher, PropagationDirective
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenIssuer
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    SCOPE_CLIENT,
    SCOPE_GLOBAL,
    LoginCommand,
    LoginResponse,
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenResponse,
    RefreshTokenUseCase,
    ValidateTokenResponse,
    ValidateTokenUseCase,
)
from src.app.use_cases.auth.dtos import CamelModel
from src.app.use_cases.propagation import DeliverPropagationUseCase
from src.depends import (
    build_propagation_coordinator,
    get_client_registry,
    get_credential_verifier,
    get_directive_dispatcher,
    get_propagation_coordinator,
    get_session_store,
    get_token_issuer,
    get_unit_of_work,
    get_unit_of_work_factory,
)
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])

bearer = HTTPBearer(auto_error=False)


def set_cookie(response: Response, key: str, value: str, max_age: int):
    response.set_cookie(
        key=key,
        value=value,
        max_age=max(0, max_age),
        httponly=True,
        secure=ApplicationConfig.SSO_COOKIE_SECURE,
        samesite="lax",
    )


async def deliver_in_background(
    directives: List[PropagationDirective],
    uow_factory,
    dispatcher: IDirectiveDispatcher,
    issuer: TokenIssuer,
):
    """Best-effort delivery of peer directives after the response is sent."""
    async with uow_factory() as uow:
        coordinator = build_propagation_coordinator(uow, dispatcher, issuer)
        await DeliverPropagationUseCase(uow, coordinator).execute(directives)


class LoginRequest(CamelModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, description="User password")
    otp_code: Optional[str] = Field(None, max_length=16, description="One-time code")
    device_id: Optional[str] = Field(None, max_length=128, description="Stable device id")
    trust_device: bool = Field(False, description="Skip the second factor on this device")
    trusted_device_token: Optional[str] = Field(None, description="Trusted-device token")


@router.post("/authentication", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    client_id: Optional[str] = Query(None, alias="clientId"),
    callback_url: Optional[str] = Query(None, alias="callBackURL"),
    sso_cookie: Optional[str] = Cookie(None, alias=ApplicationConfig.SSO_COOKIE_NAME),
    trusted_device_cookie: Optional[str] = Cookie(
        None, alias=ApplicationConfig.TRUSTED_DEVICE_COOKIE_NAME
    ),
    uow: UnitOfWork = Depends(get_unit_of_work),
    registry: ClientRegistry = Depends(get_client_registry),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
    uow_factory=Depends(get_unit_of_work_factory),
    dispatcher: IDirectiveDispatcher = Depends(get_directive_dispatcher),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Login

    Exchanges credentials for an access/refresh token pair for ``clientId``
    and starts cookie propagation to the client (and, on single sign-on, to
    the session's other clients).

    Raises:
        - 400 Bad Request: Unknown/inactive client or callBackURL mismatch
        - 401 Unauthorized: Invalid credentials or second factor required
        - 503 Service Unavailable: Session store unreachable
    """
    command = LoginCommand(
        client_id=parse_client_id(client_id),
        username=request.username,
        password=request.password,
        callback_url=callback_url,
        otp_code=request.otp_code,
        device_id=request.device_id,
        trust_device=request.trust_device,
        trusted_device_token=request.trusted_device_token or trusted_device_cookie,
        sso_token=sso_cookie,
    )

    use_case = LoginUseCase(uow, registry, verifier, store, coordinator)
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(
            result.error,
            {
                ErrorCode.INVALID_CLIENT: status.HTTP_400_BAD_REQUEST,
                ErrorCode.INVALID_CALLBACK: status.HTTP_400_BAD_REQUEST,
                ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
                ErrorCode.SECOND_FACTOR_REQUIRED: status.HTTP_401_UNAUTHORIZED,
            },
        )

    outcome = result.value
    now = store.clock()
    set_cookie(
        response,
        ApplicationConfig.SSO_COOKIE_NAME,
        outcome.session_cookie.token,
        int((outcome.session_cookie.expires_at - now).total_seconds()),
    )
    if outcome.response.trusted_device_token and outcome.trusted_device_expires_at:
        set_cookie(
            response,
            ApplicationConfig.TRUSTED_DEVICE_COOKIE_NAME,
            outcome.response.trusted_device_token,
            int((outcome.trusted_device_expires_at - now).total_seconds()),
        )

    if outcome.deferred:
        background_tasks.add_task(
            deliver_in_background, outcome.deferred, uow_factory, dispatcher, issuer
        )

    return outcome.response


@router.delete("/authentication", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    response: Response,
    scope: str = Query(SCOPE_GLOBAL, pattern=f"^({SCOPE_GLOBAL}|{SCOPE_CLIENT})$"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    sso_cookie: Optional[str] = Cookie(None, alias=ApplicationConfig.SSO_COOKIE_NAME),
    refresh_cookie: Optional[str] = Cookie(None, alias=ApplicationConfig.REFRESH_COOKIE_NAME),
    uow: UnitOfWork = Depends(get_unit_of_work),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    Logout

    Revokes the session identified by the bearer token, SSO cookie or refresh
    cookie and dispatches clear-cookie directives to every client that was in
    it. Undeliverable directives are recorded, never reported as failure.

    Raises:
        - 401 Unauthorized: No presented credential identifies a session
    """
    use_case = LogoutUseCase(uow, store, coordinator, ApplicationConfig.LOGIN_PAGE_URL)
    result = await use_case.execute(
        access_token=credentials.credentials if credentials else None,
        sso_token=sso_cookie,
        refresh_token=refresh_cookie,
        scope=scope,
    )

    if result.is_err():
        raise_for_error(
            result.error,
            {**TOKEN_ERROR_STATUS, ErrorCode.SESSION_NOT_FOUND: status.HTTP_401_UNAUTHORIZED},
        )

    outcome = result.value
    if outcome.clear_session_cookie:
        response.delete_cookie(ApplicationConfig.SSO_COOKIE_NAME)
    response.delete_cookie(ApplicationConfig.REFRESH_COOKIE_NAME)
    return outcome.response


@router.post("/validate", status_code=status.HTTP_200_OK, response_model=ValidateTokenResponse)
async def validate(
    client_id: Optional[str] = Query(None, alias="clientId"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    store: SessionStore = Depends(get_session_store),
):
    """
    Validate Access Token

    Checks signature and expiry and, unless disabled, that the session is
    still active for the token's client.

    Raises:
        - 401 Unauthorized: Missing, expired, invalid or revoked token
    """
    if credentials is None:
        raise ClientError(
            Error(ErrorCode.TOKEN_INVALID, "Bearer token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    use_case = ValidateTokenUseCase(
        uow, store, check_revocation=ApplicationConfig.VALIDATE_CHECKS_REVOCATION
    )
    result = await use_case.execute(
        credentials.credentials,
        client_id=parse_client_id(client_id) if client_id else None,
    )

    if result.is_err():
        raise_for_error(result.error, TOKEN_ERROR_STATUS)

    return result.value


class RefreshRequest(CamelModel):
    """
    Refresh token HTTP request payload

    Optional: browsers send the refresh token as a cookie instead.
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post(
    "/refreshAccessToken", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse
)
async def refresh(
    response: Response,
    request: Optional[RefreshRequest] = Body(None),
    refresh_cookie: Optional[str] = Cookie(None, alias=ApplicationConfig.REFRESH_COOKIE_NAME),
    uow: UnitOfWork = Depends(get_unit_of_work),
    store: SessionStore = Depends(get_session_store),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    Refresh Access Token

    Rotates the refresh token and returns a new access token. Presenting a
    refresh token that was already rotated revokes the whole session.

    Raises:
        - 401 Unauthorized: Invalid/expired/revoked token, or reuse detected
    """
    token = request.refresh_token if request else refresh_cookie
    if not token:
        raise ClientError(
            Error(ErrorCode.TOKEN_INVALID, "Refresh token required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    use_case = RefreshTokenUseCase(uow, store, coordinator)
    result = await use_case.execute(token)

    if result.is_err():
        raise_for_error(result.error, TOKEN_ERROR_STATUS)

    tokens = result.value
    if request is None:
        set_cookie(
            response,
            ApplicationConfig.REFRESH_COOKIE_NAME,
            tokens.refresh_token,
            tokens.refresh_expires_in,
        )
    return tokens
