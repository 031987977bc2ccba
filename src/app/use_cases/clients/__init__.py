"""
Client Registry Use Cases

Registration, lookup and administration of client applications.
"""

from .register_client_use_case import RegisterClientUseCase
from .get_client_use_case import GetClientUseCase, ListClientsUseCase
from .update_client_use_case import ChangeClientStatusUseCase, UpdateClientUseCase
from .dtos import (
    ClientInfo,
    ClientListResponse,
    ClientResponse,
    RegisterClientCommand,
    UpdateClientCommand,
)

__all__ = [
    # Use Cases
    "RegisterClientUseCase",
    "GetClientUseCase",
    "ListClientsUseCase",
    "UpdateClientUseCase",
    "ChangeClientStatusUseCase",
    # DTOs
    "RegisterClientCommand",
    "UpdateClientCommand",
    "ClientInfo",
    "ClientResponse",
    "ClientListResponse",
]
