"""
Propagation API Routes

Acknowledgement endpoint called (through the browser relay) once a client's
cookie endpoint has handled a directive.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.api.error import TOKEN_ERROR_STATUS, raise_for_error
from src.app.services.propagation_coordinator import PropagationCoordinator
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.propagation import (
    AcknowledgeCommand,
    AcknowledgePropagationUseCase,
    PropagationTargetInfo,
)
from src.depends import get_propagation_coordinator, get_unit_of_work
from src.domain.errors import ErrorCode

router = APIRouter(prefix="/propagation", tags=["Propagation"])


@router.post(
    "/{target_id}/acknowledgement",
    status_code=status.HTTP_200_OK,
    response_model=PropagationTargetInfo,
)
async def acknowledge(
    target_id: UUID,
    request: AcknowledgeCommand,
    uow: UnitOfWork = Depends(get_unit_of_work),
    coordinator: PropagationCoordinator = Depends(get_propagation_coordinator),
):
    """
    Acknowledge Directive

    Records success or failure for one propagation target. The body carries
    the signed payload the cookie endpoint received. Repeating an
    acknowledgement is harmless.

    Raises:
        - 401 Unauthorized: Payload invalid or issued for another target
        - 404 Not Found: Unknown target
    """
    use_case = AcknowledgePropagationUseCase(uow, coordinator)
    result = await use_case.execute(target_id, request)

    if result.is_err():
        raise_for_error(
            result.error,
            {**TOKEN_ERROR_STATUS, ErrorCode.TARGET_NOT_FOUND: status.HTTP_404_NOT_FOUND},
        )

    return result.value
