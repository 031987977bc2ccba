"""
Client Registry Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the client registry domain.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from src.app.use_cases.auth.dtos import CamelModel
from src.domain.entities import Client, ClientPlatform


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterClientCommand(CamelModel):
    """Register a new client application"""

    name: str = Field(..., min_length=1, max_length=255)
    base_domain: str = Field(..., min_length=1, max_length=255)
    platform: ClientPlatform = ClientPlatform.web
    description: Optional[str] = Field(default=None, max_length=1024)
    logo_url: Optional[str] = Field(default=None, max_length=1024)
    set_cookie_path: Optional[str] = Field(default=None, max_length=255)
    clear_cookie_path: Optional[str] = Field(default=None, max_length=255)


class UpdateClientCommand(CamelModel):
    """Partial update; omitted fields keep their value"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    base_domain: Optional[str] = Field(default=None, max_length=255)
    platform: Optional[ClientPlatform] = None
    description: Optional[str] = Field(default=None, max_length=1024)
    logo_url: Optional[str] = Field(default=None, max_length=1024)
    set_cookie_path: Optional[str] = Field(default=None, max_length=255)
    clear_cookie_path: Optional[str] = Field(default=None, max_length=255)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# ============================================================================
# Response DTOs
# ============================================================================


class ClientInfo(CamelModel):
    """Client details returned by lookups and administration"""

    client_id: str
    name: str
    base_domain: str
    platform: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    set_cookie_url: str
    clear_cookie_url: str
    active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, client: Client) -> "ClientInfo":
        return cls(
            client_id=str(client.id),
            name=client.name,
            base_domain=client.base_domain,
            platform=client.platform.value,
            description=client.description,
            logo_url=client.logo_url,
            set_cookie_url=client.set_cookie_url,
            clear_cookie_url=client.clear_cookie_url,
            active=client.active,
            created_at=client.created_at,
            updated_at=client.updated_at,
        )


class ClientResponse(CamelModel):
    """Response wrapping a single client"""

    client: ClientInfo


class ClientListResponse(CamelModel):
    """Response for client listing"""

    clients: List[ClientInfo]
