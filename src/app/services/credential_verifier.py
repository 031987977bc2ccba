"""
Credential Verifier

Checks username/password and, for users enrolled in a second factor, either
a TOTP code or a trusted-device token bound to the user and device.
"""

import base64
import binascii
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import bcrypt

from libs.result import Error, Result, Return
from src.app.services.token_issuer import MintedToken, TokenIssuer, TokenKind, to_epoch
from src.app.services.unit_of_work import UnitOfWork
from src.domain.clock import Clock, utcnow
from src.domain.entities import User, UserStatus
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)

TOTP_INTERVAL = 30
TOTP_DIGITS = 6

# Compared against when the username is unknown so both paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(12))


def generate_totp(secret: str, timestamp: float, interval: int = TOTP_INTERVAL) -> str:
    padded = secret.upper() + "=" * ((8 - len(secret) % 8) % 8)
    try:
        key = base64.b32decode(padded, True)
    except (binascii.Error, ValueError):
        logger.warning("TOTP secret is not valid base32")
        return ""
    counter = int(timestamp // interval).to_bytes(8, "big")
    digest = hmac.new(key, counter, hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    code = (int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF) % (
        10**TOTP_DIGITS
    )
    return str(code).zfill(TOTP_DIGITS)


def verify_totp(secret: str, code: str, timestamp: float, window: int = 1) -> bool:
    """Accept the current step and ``window`` adjacent steps for clock skew."""
    if not code:
        return False
    for step in range(-window, window + 1):
        generated = generate_totp(secret, timestamp + step * TOTP_INTERVAL)
        if generated and hmac.compare_digest(generated, code.strip()):
            return True
    return False


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(12)).decode()


@dataclass(frozen=True)
class VerifiedPrincipal:
    user: User
    second_factor: str  # "none" | "totp" | "trusted_device"

    @property
    def user_id(self) -> UUID:
        return self.user.id


class CredentialVerifier:
    """
    Verifies credentials presented at login.

    Business Rules:
    - Unknown user, wrong password and disabled account are indistinguishable
      (uniform INVALID_CREDENTIALS, constant-time bcrypt on every path)
    - A valid trusted-device token for this user and device skips the
      second factor; it never replaces the password
    - A missing or wrong TOTP code yields SECOND_FACTOR_REQUIRED only after
      the password was accepted
    """

    def __init__(self, uow: UnitOfWork, issuer: TokenIssuer, clock: Clock = utcnow):
        self.uow = uow
        self.issuer = issuer
        self.clock = clock

    async def verify(
        self,
        username: str,
        password: str,
        otp_code: Optional[str] = None,
        trusted_device_token: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> Result[VerifiedPrincipal]:
        user = await self.uow.users.get_by_username(username)

        if user is None:
            bcrypt.checkpw(password.encode(), _DUMMY_HASH)
            return Return.err(
                Error(ErrorCode.INVALID_CREDENTIALS, "Invalid username or password")
            )

        password_valid = bcrypt.checkpw(password.encode(), user.password_hash.encode())
        if not password_valid or user.status == UserStatus.disabled:
            return Return.err(
                Error(ErrorCode.INVALID_CREDENTIALS, "Invalid username or password")
            )

        if not user.totp_secret:
            return Return.ok(VerifiedPrincipal(user=user, second_factor="none"))

        if self.is_trusted_device(user.id, trusted_device_token, device_id):
            return Return.ok(VerifiedPrincipal(user=user, second_factor="trusted_device"))

        if otp_code and verify_totp(user.totp_secret, otp_code, to_epoch(self.clock())):
            return Return.ok(VerifiedPrincipal(user=user, second_factor="totp"))

        return Return.err(
            Error(ErrorCode.SECOND_FACTOR_REQUIRED, "A one-time code is required")
        )

    def is_trusted_device(
        self, user_id: UUID, token: Optional[str], device_id: Optional[str]
    ) -> bool:
        if not token or not device_id:
            return False
        result = self.issuer.validate(token, TokenKind.trusted_device)
        if result.is_err():
            return False
        claims = result.value
        return claims.sub == str(user_id) and claims.did == device_id

    def issue_trusted_device_token(self, user_id: UUID, device_id: str) -> MintedToken:
        return self.issuer.mint(
            TokenKind.trusted_device, {"sub": str(user_id), "did": device_id}
        )
