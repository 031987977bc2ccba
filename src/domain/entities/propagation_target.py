"""
PropagationTarget Entity

Delivery state of one cookie directive sent to one client domain.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.clock import utcnow
from .enums import PropagationAction, PropagationStatus


class PropagationTarget(SQLModel, table=True):
    """
    PropagationTarget entity - state machine per (session, client) directive.

    Business Rules:
    - pending -> dispatched -> acknowledged | failed
    - acknowledged and failed are terminal; a retry is a new attempt on the
      same row, started explicitly
    - Failure is recorded, never propagated to the user-facing request
    """

    __tablename__ = "propagation_targets"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    session_id: UUID = Field(foreign_key="sessions.id", nullable=False, index=True)
    client_id: UUID = Field(foreign_key="clients.id", nullable=False)

    action: PropagationAction
    status: PropagationStatus = Field(default=PropagationStatus.pending)
    target_url: str = Field(max_length=1024)

    attempts: int = Field(default=0)
    last_error: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    dispatched_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    ack_deadline_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_propagation_status_deadline", "status", "ack_deadline_at"),
    )
