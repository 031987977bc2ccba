"""
Propagation Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from src.app.use_cases.auth.dtos import CamelModel
from src.domain.entities import PropagationTarget


class AcknowledgeCommand(CamelModel):
    """Result reported by a client's cookie endpoint (through the browser)"""

    payload: str = Field(..., min_length=1, description="Signed payload of the directive")
    success: bool
    error: Optional[str] = Field(default=None, max_length=512)


class PropagationTargetInfo(CamelModel):
    target_id: str
    session_id: str
    client_id: str
    action: str
    status: str
    target_url: str
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    dispatched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    ack_deadline_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, target: PropagationTarget) -> "PropagationTargetInfo":
        return cls(
            target_id=str(target.id),
            session_id=str(target.session_id),
            client_id=str(target.client_id),
            action=target.action.value,
            status=target.status.value,
            target_url=target.target_url,
            attempts=target.attempts,
            last_error=target.last_error,
            created_at=target.created_at,
            dispatched_at=target.dispatched_at,
            completed_at=target.completed_at,
            ack_deadline_at=target.ack_deadline_at,
        )


class PropagationTargetListResponse(CamelModel):
    session_id: str
    targets: List[PropagationTargetInfo]
