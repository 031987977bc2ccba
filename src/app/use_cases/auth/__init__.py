"""
Authentication Use Cases

All authentication-related business logic.
"""

from .login_use_case import LoginUseCase
from .sso_login_use_case import SsoLoginUseCase
from .logout_use_case import LogoutUseCase, SCOPE_CLIENT, SCOPE_GLOBAL
from .refresh_token_use_case import RefreshTokenUseCase
from .validate_token_use_case import ValidateTokenUseCase
from .dtos import (
    LoginCommand,
    LoginOutcome,
    LoginResponse,
    LogoutOutcome,
    LogoutResponse,
    PropagationDirectiveView,
    RefreshTokenResponse,
    SessionCookie,
    SsoLoginOutcome,
    ValidateTokenResponse,
)

__all__ = [
    # Use Cases
    "LoginUseCase",
    "SsoLoginUseCase",
    "LogoutUseCase",
    "RefreshTokenUseCase",
    "ValidateTokenUseCase",
    # Logout scopes
    "SCOPE_CLIENT",
    "SCOPE_GLOBAL",
    # DTOs - Commands
    "LoginCommand",
    # DTOs - Responses
    "LoginResponse",
    "LogoutResponse",
    "RefreshTokenResponse",
    "ValidateTokenResponse",
    "PropagationDirectiveView",
    # DTOs - Outcomes
    "LoginOutcome",
    "LogoutOutcome",
    "SsoLoginOutcome",
    "SessionCookie",
]
