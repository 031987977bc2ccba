from typing import Dict, Optional
from uuid import UUID

from fastapi import status
from libs.result import Error
from src.domain.errors import ErrorCode


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Statuses shared by every route that accepts a token
TOKEN_ERROR_STATUS: Dict[str, int] = {
    code: status.HTTP_401_UNAUTHORIZED for code in ErrorCode.TOKEN_ERRORS
}


def raise_for_error(error: Error, statuses: Dict[str, int]):
    """Raise the ClientError mapped to ``error.code``, or a ServerError."""
    status_code = statuses.get(error.code)
    if status_code is not None:
        raise ClientError(error, status_code=status_code)
    raise ServerError(error)


def parse_client_id(value: Optional[str], status_code: int = status.HTTP_400_BAD_REQUEST) -> UUID:
    """clientId query values that are not UUIDs are unknown clients."""
    try:
        return UUID(value)
    except (TypeError, ValueError):
        raise ClientError(
            Error(ErrorCode.INVALID_CLIENT, "Unknown or inactive client"),
            status_code=status_code,
        )
