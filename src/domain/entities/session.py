"""
Session Entity

One authenticated principal's standing across clients.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.clock import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - shared by every client in its active set.

    Business Rules:
    - The active client set lives in session_clients
    - Revocation is global: all clients leave the set, all refresh tokens die
    - expires_at slides forward on every refresh
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_refreshed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_user_revoked", "user_id", "revoked"),
    )

    def is_live(self, now: datetime) -> bool:
        return not self.revoked and self.expires_at > now
