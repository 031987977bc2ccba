"""
SessionClient Entity

Membership of a client in a session's active client set.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.clock import utcnow


class SessionClient(SQLModel, table=True):
    """
    SessionClient entity - one row per (session, client) pair.

    Business Rules:
    - active=True means the client's domain holds (or is being sent) cookies
      for this session
    - Removal keeps the row (active=False, removed_at) for cleanup lookups
    - user_id is denormalized for the (user, client) hot-path index
    """

    __tablename__ = "session_clients"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    session_id: UUID = Field(foreign_key="sessions.id", nullable=False)
    client_id: UUID = Field(foreign_key="clients.id", nullable=False)
    user_id: UUID = Field(foreign_key="users.id", nullable=False)

    active: bool = Field(default=True)
    added_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    removed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_client_pair", "session_id", "client_id", unique=True),
        Index("idx_session_client_user_client", "user_id", "client_id"),
    )
