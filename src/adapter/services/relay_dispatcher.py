"""
Browser relay dispatcher

Directives are handed back to the browser, which loads each client's cookie
endpoint in a hidden frame and reports the result, together with the
signed payload, through the acknowledgement endpoint. Dispatch therefore
only records the hand-off.
"""

import logging

from src.app.services.directive_dispatcher import (
    DispatchOutcome,
    IDirectiveDispatcher,
    PropagationDirective,
)
from src.domain.entities import PropagationStatus

logger = logging.getLogger(__name__)


class BrowserRelayDispatcher(IDirectiveDispatcher):
    awaits_acknowledgement = True

    async def dispatch(self, directive: PropagationDirective) -> DispatchOutcome:
        logger.debug(
            f"Directive {directive.target_id} ({directive.action.value}) "
            f"relayed to browser for client {directive.client_id}"
        )
        return DispatchOutcome(
            target_id=directive.target_id, status=PropagationStatus.dispatched
        )
