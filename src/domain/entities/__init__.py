"""
SSO Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    UserStatus,
    ClientPlatform,
    RefreshTokenStatus,
    PropagationAction,
    PropagationStatus,
)

# Export all entities
from .user import User
from .client import Client
from .session import Session
from .session_client import SessionClient
from .refresh_token import RefreshToken
from .propagation_target import PropagationTarget
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "UserStatus",
    "ClientPlatform",
    "RefreshTokenStatus",
    "PropagationAction",
    "PropagationStatus",
    # Entities
    "User",
    "Client",
    "Session",
    "SessionClient",
    "RefreshToken",
    "PropagationTarget",
    "AuditEvent",
]
