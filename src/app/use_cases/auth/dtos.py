"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain.
Responses serialize to camelCase, the wire format client applications expect.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.app.services.directive_dispatcher import DispatchOutcome, PropagationDirective


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Command DTOs
# ============================================================================


class LoginCommand(BaseModel):
    """Credentials and context presented at POST /authentication"""

    client_id: UUID
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    callback_url: Optional[str] = None
    otp_code: Optional[str] = None
    device_id: Optional[str] = Field(default=None, max_length=128)
    trust_device: bool = False
    trusted_device_token: Optional[str] = None
    sso_token: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class PropagationDirectiveView(CamelModel):
    """A directive as returned to the browser for relay or inspection"""

    target_id: UUID
    client_id: UUID
    action: str
    url: str
    payload: str
    expires_at: datetime
    status: str

    @classmethod
    def build(
        cls,
        directives: List[PropagationDirective],
        outcomes: Optional[List[DispatchOutcome]] = None,
        default_status: str = "pending",
    ) -> List["PropagationDirectiveView"]:
        status_by_target: Dict[UUID, str] = {
            o.target_id: o.status.value for o in outcomes or []
        }
        return [
            cls(
                target_id=d.target_id,
                client_id=d.client_id,
                action=d.action.value,
                url=d.url,
                payload=d.payload,
                expires_at=d.expires_at,
                status=status_by_target.get(d.target_id, default_status),
            )
            for d in directives
        ]


class LoginResponse(CamelModel):
    """Response for POST /authentication"""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    session_id: str
    user_id: str
    client_id: str
    trusted_device_token: Optional[str] = None
    redirect_url: Optional[str] = None
    propagation: List[PropagationDirectiveView] = []


class LogoutResponse(CamelModel):
    """Response for DELETE /authentication"""

    success: bool = True
    session_id: Optional[str] = None
    redirect_url: Optional[str] = None
    propagation: List[PropagationDirectiveView] = []


class RefreshTokenResponse(CamelModel):
    """Response for POST /refreshAccessToken"""

    access_token: str
    expires_in: int
    refresh_token: str
    refresh_expires_in: int
    token_type: str = "Bearer"


class ValidateTokenResponse(CamelModel):
    """Response for POST /validate"""

    valid: bool = True
    user_id: str
    client_id: Optional[str] = None
    session_id: Optional[str] = None
    issued_at: int
    expires_at: int
    expires_in: int


# ============================================================================
# Outcomes carried back to the HTTP layer (not serialized as-is)
# ============================================================================


@dataclass
class SessionCookie:
    """The authority's own browser cookie value and its expiry"""

    token: str
    expires_at: datetime


@dataclass
class LoginOutcome:
    response: LoginResponse
    session_cookie: SessionCookie
    trusted_device_expires_at: Optional[datetime] = None
    # Peer directives left for background delivery
    deferred: List[PropagationDirective] = field(default_factory=list)


@dataclass
class SsoLoginOutcome:
    redirect_url: str
    authenticated: bool = False


@dataclass
class LogoutOutcome:
    response: LogoutResponse
    clear_session_cookie: bool = True
