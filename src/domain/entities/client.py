"""
Client Entity

A registered application that participates in single sign-on.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.clock import utcnow
from .enums import ClientPlatform


class Client(SQLModel, table=True):
    """
    Client entity - an application trusted to receive SSO credentials.

    Business Rules:
    - id (clientId) is immutable
    - base_domain is the normalized origin used both to validate callback
      URLs and as the cookie propagation target
    - Never deleted: deactivation flips ``active`` so in-flight sessions can
      still be cleaned up against the last known domain
    """

    __tablename__ = "clients"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    base_domain: str = Field(max_length=255, index=True)
    platform: ClientPlatform = Field(default=ClientPlatform.web)

    # Display metadata
    description: Optional[str] = Field(default=None, max_length=1024)
    logo_url: Optional[str] = Field(default=None, max_length=1024)

    # Paths of the client's cookie endpoints, relative to base_domain
    set_cookie_path: str = Field(max_length=255)
    clear_cookie_path: str = Field(max_length=255)

    active: bool = Field(default=True)
    deactivated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_client_active", "active"),)

    @property
    def set_cookie_url(self) -> str:
        return f"{self.base_domain}{self.set_cookie_path}"

    @property
    def clear_cookie_url(self) -> str:
        return f"{self.base_domain}{self.clear_cookie_path}"
