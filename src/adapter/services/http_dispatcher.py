"""
HTTP back-channel dispatcher

POSTs the signed payload to the client's cookie endpoint. A 2xx response
counts as acknowledged; anything else is a failed delivery. Timeouts are
enforced by the coordinator, not here.
"""

import logging
from typing import Optional

import httpx

from src.app.services.directive_dispatcher import (
    DispatchOutcome,
    IDirectiveDispatcher,
    PropagationDirective,
)
from src.domain.entities import PropagationStatus
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)


class HttpDirectiveDispatcher(IDirectiveDispatcher):
    awaits_acknowledgement = False

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": "sso-authority/0.1.0"}
        )

    async def dispatch(self, directive: PropagationDirective) -> DispatchOutcome:
        try:
            response = await self.client.post(
                directive.url,
                json={
                    "action": directive.action.value,
                    "payload": directive.payload,
                    "targetId": str(directive.target_id),
                },
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Directive {directive.target_id} to {directive.url} not delivered: "
                f"{type(e).__name__}"
            )
            return DispatchOutcome(
                target_id=directive.target_id,
                status=PropagationStatus.failed,
                error_code=ErrorCode.PROPAGATION_FAILED,
                error=f"{type(e).__name__}: {e}"[:512],
            )

        if response.is_success:
            return DispatchOutcome(
                target_id=directive.target_id, status=PropagationStatus.acknowledged
            )

        return DispatchOutcome(
            target_id=directive.target_id,
            status=PropagationStatus.failed,
            error_code=ErrorCode.PROPAGATION_FAILED,
            error=f"Client endpoint responded {response.status_code}",
        )

    async def aclose(self) -> None:
        await self.client.aclose()
