"""
Audit API Routes

Handles audit event retrieval for administrators.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.depends import get_unit_of_work

router = APIRouter(prefix="/admin/audit", tags=["Audit"])


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    action: str
    username: Optional[str]
    client_id: Optional[str]
    session_id: Optional[str]
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    """GET /admin/audit response payload"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def get_audit_events(
    uow: UnitOfWork = Depends(get_unit_of_work),
    user_id: Optional[UUID] = Query(None, alias="userId", description="Filter by user"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Get Audit Events

    Returns authentication, propagation and registry audit logs.

    Query Parameters:
        - userId: Restrict to one user's events
        - limit: Maximum number of events to return (1-100, default 50)
        - cursor: Pagination cursor for fetching next page

    Returns:
        - events: List of audit events ordered by newest first
        - next_cursor: Cursor for next page (null if no more events)

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(user_id=user_id, limit=limit, cursor=cursor)

    if result.is_err():
        raise ServerError(result.error)

    return result.value
