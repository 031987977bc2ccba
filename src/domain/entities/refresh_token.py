"""
RefreshToken Entity

Server-side state of a refresh token, keyed by the token's jti.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.clock import utcnow
from .enums import RefreshTokenStatus


class RefreshToken(SQLModel, table=True):
    """
    RefreshToken entity - makes refresh tokens stateful.

    Business Rules:
    - Rotates on every use: the used row becomes ``rotated`` and points at
      its replacement
    - Presenting a ``rotated`` token again is treated as theft and revokes
      the whole session
    - ``revoked`` rows are dead without raising the theft alarm (logout,
      re-login on the same client)
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)  # jti claim
    session_id: UUID = Field(foreign_key="sessions.id", nullable=False, index=True)
    client_id: UUID = Field(foreign_key="clients.id", nullable=False)
    user_id: UUID = Field(foreign_key="users.id", nullable=False)

    status: RefreshTokenStatus = Field(default=RefreshTokenStatus.active)
    replaced_by: Optional[UUID] = Field(default=None)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_refresh_session_client", "session_id", "client_id"),
        Index("idx_refresh_expires_at", "expires_at"),
    )
