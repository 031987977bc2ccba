"""
User Use Cases

Administrative actions on a user's sessions.
"""

from .revoke_sessions_use_case import RevokeSessionsUseCase

__all__ = [
    "RevokeSessionsUseCase",
]
