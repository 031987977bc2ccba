"""
Token Issuer

Mints and validates every token the SSO authority hands out. All tokens share
one shape (a JWT signed with the current key of a rotatable key ring) and
differ only in kind, TTL and claims.

Validation is a pure function of the token, the key ring and the server
clock: no I/O, no locks, no client-supplied time.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from libs.result import Error, Result, Return
from src.domain.clock import Clock, utcnow
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    access = "access"
    refresh = "refresh"
    trusted_device = "trusted_device"
    # The authority's own browser cookie, lets a second client log in silently
    sso_session = "sso_session"
    # Signed set/clear-cookie payload carried to a client domain
    propagation = "propagation"


class TokenClaims(BaseModel):
    """Decoded claims of a validated token"""

    kind: TokenKind
    jti: str
    sub: str
    iat: int
    exp: int
    kid: Optional[str] = None
    cid: Optional[str] = None
    sid: Optional[str] = None
    did: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    @property
    def user_id(self) -> UUID:
        return UUID(self.sub)

    @property
    def client_id(self) -> Optional[UUID]:
        return UUID(self.cid) if self.cid else None

    @property
    def session_id(self) -> Optional[UUID]:
        return UUID(self.sid) if self.sid else None

    @property
    def token_id(self) -> UUID:
        return UUID(self.jti)

    @property
    def expires_at(self) -> datetime:
        return from_epoch(self.exp)


@dataclass(frozen=True)
class MintedToken:
    token: str
    jti: str
    expires_at: datetime

    def expires_in(self, now: datetime) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))


def to_epoch(value: datetime) -> int:
    return int(value.replace(tzinfo=UTC).timestamp())


def from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)


@dataclass
class SigningKey:
    kid: str
    secret: str
    retired_at: Optional[datetime] = None


class SigningKeyRing:
    """
    Current signing key plus recently retired keys.

    A retired key keeps verifying for ``grace`` after it was retired so tokens
    minted just before a rotation stay valid. Rotation swaps references only,
    validation never waits on it.
    """

    def __init__(
        self,
        current: SigningKey,
        previous: Optional[List[SigningKey]] = None,
        grace: timedelta = timedelta(days=1),
        clock: Clock = utcnow,
    ):
        self._current = current
        self._previous: List[SigningKey] = list(previous or [])
        self.grace = grace
        self.clock = clock

    @classmethod
    def from_config(cls, config, clock: Clock = utcnow) -> "SigningKeyRing":
        previous = []
        if config.JWT_PREVIOUS_SECRET:
            previous.append(
                SigningKey(
                    kid=config.JWT_PREVIOUS_KEY_ID,
                    secret=config.JWT_PREVIOUS_SECRET,
                    retired_at=clock(),
                )
            )
        return cls(
            current=SigningKey(kid=config.JWT_KEY_ID, secret=config.JWT_SECRET),
            previous=previous,
            grace=timedelta(seconds=config.JWT_KEY_GRACE_SECONDS),
            clock=clock,
        )

    @property
    def current(self) -> SigningKey:
        return self._current

    def rotate(self, secret: Optional[str] = None, kid: Optional[str] = None) -> SigningKey:
        """Retire the current key and start signing with a new one."""
        now = self.clock()
        retired = SigningKey(
            kid=self._current.kid, secret=self._current.secret, retired_at=now
        )
        new_key = SigningKey(
            kid=kid or f"k{secrets.token_hex(4)}",
            secret=secret or secrets.token_urlsafe(48),
        )
        self._previous = [retired] + [
            k for k in self._previous if k.retired_at + self.grace > now
        ]
        self._current = new_key
        logger.info(f"Signing key rotated: {retired.kid} -> {new_key.kid}")
        return new_key

    def verification_key(self, kid: Optional[str]) -> Optional[str]:
        current = self._current
        if kid is None or kid == current.kid:
            return current.secret
        now = self.clock()
        for key in self._previous:
            if key.kid == kid and key.retired_at + self.grace > now:
                return key.secret
        return None


class TokenIssuer:
    """
    Mints and validates tokens of every kind.

    Business Rules:
    - Expiry is computed from the kind's fixed TTL unless the caller pins it
      (a refresh token expires with its stored row)
    - ``validate`` distinguishes malformed, bad signature and expired tokens
    - Expiry is checked against the server clock only
    """

    def __init__(
        self,
        keys: SigningKeyRing,
        ttls: Dict[TokenKind, timedelta],
        algorithm: str = "HS256",
        clock: Clock = utcnow,
    ):
        self.keys = keys
        self.ttls = ttls
        self.algorithm = algorithm
        self.clock = clock

    @classmethod
    def from_config(cls, config, clock: Clock = utcnow) -> "TokenIssuer":
        ttls = {
            TokenKind.access: timedelta(seconds=config.ACCESS_TOKEN_TTL_SECONDS),
            TokenKind.refresh: timedelta(days=config.REFRESH_TOKEN_TTL_DAYS),
            TokenKind.trusted_device: timedelta(days=config.TRUSTED_DEVICE_TTL_DAYS),
            TokenKind.sso_session: timedelta(days=config.REFRESH_TOKEN_TTL_DAYS),
            TokenKind.propagation: timedelta(
                seconds=config.PROPAGATION_PAYLOAD_TTL_SECONDS
            ),
        }
        return cls(
            keys=SigningKeyRing.from_config(config, clock=clock),
            ttls=ttls,
            algorithm=config.JWT_ALGORITHM,
            clock=clock,
        )

    def ttl(self, kind: TokenKind) -> timedelta:
        return self.ttls[kind]

    def mint(
        self,
        kind: TokenKind,
        claims: Dict[str, Any],
        expires_at: Optional[datetime] = None,
        jti: Optional[str] = None,
    ) -> MintedToken:
        """
        Encode claims into a signed token of the given kind.

        Args:
            kind: Token kind, selects the TTL
            claims: sub plus any of cid, sid, did, data
            expires_at: Pin the expiry instead of deriving it from the TTL
            jti: Token id to encode (a refresh token carries its row id)
        """
        now = self.clock()
        expires_at = expires_at or now + self.ttl(kind)
        token_id = jti or str(uuid4())
        key = self.keys.current
        payload = {
            **{k: v for k, v in claims.items() if v is not None},
            "kind": kind.value,
            "jti": token_id,
            "iat": to_epoch(now),
            "exp": to_epoch(expires_at),
            "kid": key.kid,
        }
        token = jwt.encode(
            payload, key.secret, algorithm=self.algorithm, headers={"kid": key.kid}
        )
        return MintedToken(token=token, jti=token_id, expires_at=from_epoch(payload["exp"]))

    def validate(
        self, token: str, kind: Optional[TokenKind] = None
    ) -> Result[TokenClaims]:
        """
        Check signature, kind and expiry.

        Returns:
            Result with TokenClaims, or Error TOKEN_INVALID (malformed or wrong
            kind), TOKEN_BAD_SIGNATURE or TOKEN_EXPIRED
        """
        if not token:
            return Return.err(Error(ErrorCode.TOKEN_INVALID, "Token is missing"))

        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            return Return.err(Error(ErrorCode.TOKEN_INVALID, "Malformed token"))

        secret = self.keys.verification_key(header.get("kid"))
        if secret is None:
            return Return.err(
                Error(ErrorCode.TOKEN_BAD_SIGNATURE, "Unknown or retired signing key")
            )

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_aud": False,
                },
            )
        except JWTError:
            return Return.err(
                Error(ErrorCode.TOKEN_BAD_SIGNATURE, "Token signature verification failed")
            )

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError:
            return Return.err(Error(ErrorCode.TOKEN_INVALID, "Malformed token claims"))

        if kind is not None and claims.kind != kind:
            return Return.err(
                Error(ErrorCode.TOKEN_INVALID, f"Expected a {kind.value} token")
            )

        if claims.exp <= to_epoch(self.clock()):
            return Return.err(Error(ErrorCode.TOKEN_EXPIRED, "Token has expired"))

        return Return.ok(claims)
