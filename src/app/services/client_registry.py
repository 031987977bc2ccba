"""
Client Registry

Allowlist of applications that participate in single sign-on. Every trust
decision about a caller-supplied URL is a lookup here, never a string
comparison against caller input.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.clock import Clock, utcnow
from src.domain.entities import Client, ClientPlatform
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}

UPDATABLE_FIELDS = (
    "name",
    "base_domain",
    "platform",
    "description",
    "logo_url",
    "set_cookie_path",
    "clear_cookie_path",
)


def normalize_origin(url: str, allow_path: bool = False) -> Optional[str]:
    """
    Reduce a URL to ``scheme://host[:port]``.

    Scheme and host are lowercased and default ports dropped. Returns None for
    anything that is not an http(s) URL with a host, for URLs carrying
    userinfo, and (unless ``allow_path``) for URLs with a path, query or
    fragment.
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None
    if parts.username is not None or parts.password is not None:
        return None
    if not allow_path and (
        parts.path not in ("", "/") or parts.query or parts.fragment
    ):
        return None

    origin = f"{scheme}://{parts.hostname.lower()}"
    if port is not None and port != DEFAULT_PORTS[scheme]:
        origin = f"{origin}:{port}"
    return origin


def callback_matches(base_domain: str, callback_url: str) -> bool:
    """True iff the callback's origin equals the registered origin exactly."""
    origin = normalize_origin(callback_url, allow_path=True)
    return origin is not None and origin == normalize_origin(base_domain)


def _valid_cookie_path(path: Optional[str]) -> bool:
    return bool(path) and path.startswith("/") and not path.startswith("//")


class ClientRegistry:
    """
    Registered client applications and their trusted origins.

    Business Rules:
    - base_domain is stored normalized, so lookups compare origins exactly
    - Clients are never deleted; deactivation flips a flag
    - An inactive client cannot start logins but still resolves for cleanup
    """

    def __init__(self, uow: UnitOfWork, config=None, clock: Clock = utcnow):
        self.uow = uow
        self.clock = clock
        self.default_set_cookie_path = getattr(
            config, "DEFAULT_SET_COOKIE_PATH", "/sso/cookies"
        )
        self.default_clear_cookie_path = getattr(
            config, "DEFAULT_CLEAR_COOKIE_PATH", "/sso/cookies/clear"
        )

    async def register(
        self,
        name: str,
        base_domain: str,
        platform: ClientPlatform = ClientPlatform.web,
        description: Optional[str] = None,
        logo_url: Optional[str] = None,
        set_cookie_path: Optional[str] = None,
        clear_cookie_path: Optional[str] = None,
    ) -> Result[Client]:
        """
        Register a new client.

        Returns:
            Result with the created Client, or Error INVALID_DOMAIN
        """
        origin = normalize_origin(base_domain)
        if origin is None:
            return Return.err(
                Error(
                    ErrorCode.INVALID_DOMAIN,
                    "baseDomain must be an http(s) origin without path",
                )
            )

        set_path = set_cookie_path or self.default_set_cookie_path
        clear_path = clear_cookie_path or self.default_clear_cookie_path
        if not (_valid_cookie_path(set_path) and _valid_cookie_path(clear_path)):
            return Return.err(
                Error(ErrorCode.INVALID_DOMAIN, "Cookie endpoint paths must start with '/'")
            )

        client = await self.uow.clients.create(
            Client(
                name=name,
                base_domain=origin,
                platform=platform,
                description=description,
                logo_url=logo_url,
                set_cookie_path=set_path,
                clear_cookie_path=clear_path,
            )
        )
        logger.info(f"Client registered: {client.id} ({origin})")
        return Return.ok(client)

    async def get(self, client_id: UUID) -> Result[Client]:
        """Any client, active or not (administration and cleanup)."""
        client = await self.uow.clients.get_by_id(client_id)
        if client is None:
            return Return.err(Error(ErrorCode.CLIENT_NOT_FOUND, "Client not found"))
        return Return.ok(client)

    async def lookup(self, client_id: UUID) -> Result[Client]:
        """Active client only; unknown and deactivated ids are both INVALID_CLIENT."""
        client = await self.uow.clients.get_by_id(client_id)
        if client is None or not client.active:
            return Return.err(Error(ErrorCode.INVALID_CLIENT, "Unknown or inactive client"))
        return Return.ok(client)

    async def validate_callback(self, client_id: UUID, callback_url: str) -> bool:
        result = await self.lookup(client_id)
        if result.is_err():
            return False
        return callback_matches(result.value.base_domain, callback_url)

    async def list(self, include_inactive: bool = False) -> List[Client]:
        return await self.uow.clients.list(include_inactive=include_inactive)

    async def update(self, client_id: UUID, fields: Dict[str, Any]) -> Result[Client]:
        """
        Update display metadata, domain or cookie paths. The clientId never
        changes; unknown field names are ignored.
        """
        found = await self.get(client_id)
        if found.is_err():
            return found
        client = found.value

        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        if "base_domain" in changes:
            origin = normalize_origin(changes["base_domain"])
            if origin is None:
                return Return.err(
                    Error(
                        ErrorCode.INVALID_DOMAIN,
                        "baseDomain must be an http(s) origin without path",
                    )
                )
            changes["base_domain"] = origin
        for key in ("set_cookie_path", "clear_cookie_path"):
            if key in changes and not _valid_cookie_path(changes[key]):
                return Return.err(
                    Error(ErrorCode.INVALID_DOMAIN, "Cookie endpoint paths must start with '/'")
                )

        for key, value in changes.items():
            setattr(client, key, value)
        client.updated_at = self.clock()
        client = await self.uow.clients.update(client)
        return Return.ok(client)

    async def deactivate(self, client_id: UUID) -> Result[Client]:
        return await self._set_active(client_id, False)

    async def reactivate(self, client_id: UUID) -> Result[Client]:
        return await self._set_active(client_id, True)

    async def _set_active(self, client_id: UUID, active: bool) -> Result[Client]:
        found = await self.get(client_id)
        if found.is_err():
            return found
        client = found.value
        if client.active == active:
            return Return.ok(client)

        now = self.clock()
        client.active = active
        client.deactivated_at = None if active else now
        client.updated_at = now
        client = await self.uow.clients.update(client)
        logger.info(f"Client {client.id} {'reactivated' if active else 'deactivated'}")
        return Return.ok(client)
