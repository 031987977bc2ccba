"""
Directive Dispatcher interface

Transport that carries a set-cookie or clear-cookie directive to a client
domain. The coordinator owns the state machine; a dispatcher only reports
what happened to one delivery.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities import PropagationAction, PropagationStatus


class PropagationDirective(BaseModel):
    """One cookie operation for one client domain"""

    target_id: UUID
    session_id: UUID
    client_id: UUID
    action: PropagationAction
    url: str
    payload: str  # signed, opaque to everyone but the target endpoint
    expires_at: datetime
    primary: bool = False


class DispatchOutcome(BaseModel):
    """What the transport observed for one directive"""

    target_id: UUID
    status: PropagationStatus
    error_code: Optional[str] = None
    error: Optional[str] = None


class IDirectiveDispatcher(ABC):
    """Delivery transport for propagation directives"""

    # True when success is reported later through the acknowledgement endpoint
    awaits_acknowledgement: bool = False

    @abstractmethod
    async def dispatch(self, directive: PropagationDirective) -> DispatchOutcome:
        """
        Deliver a directive.

        Returns:
            DispatchOutcome with status dispatched (acknowledgement pending),
            acknowledged or failed

        Raises:
            Any exception is treated by the caller as a failed delivery
        """
        pass

    async def aclose(self) -> None:
        pass
