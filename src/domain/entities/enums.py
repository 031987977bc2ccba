"""
SSO Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class ClientPlatform(str, Enum):
    """Platform a registered client application runs on"""

    web = "web"
    mobile = "mobile"
    other = "other"


class RefreshTokenStatus(str, Enum):
    """Lifecycle of a single refresh token"""

    active = "active"
    rotated = "rotated"
    revoked = "revoked"


class PropagationAction(str, Enum):
    """Cookie operation a propagation directive asks a client domain to perform"""

    set_cookie = "set_cookie"
    clear_cookie = "clear_cookie"


class PropagationStatus(str, Enum):
    """State of one (session, client) propagation target"""

    pending = "pending"
    dispatched = "dispatched"
    acknowledged = "acknowledged"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PropagationStatus.acknowledged, PropagationStatus.failed)
