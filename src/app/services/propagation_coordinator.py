"""
Propagation Coordinator

Keeps cookie state in step across every client domain a session spans.
Each (session, client) directive is a PropagationTarget row moving through
pending -> dispatched -> acknowledged | failed.

Delivery to one domain never affects delivery to another: dispatches run
concurrently under a shared bound, each with its own timeout, and every
failure is recorded on its own target instead of being raised.
"""

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.directive_dispatcher import (
    DispatchOutcome,
    IDirectiveDispatcher,
    PropagationDirective,
)
from src.app.services.token_issuer import TokenIssuer, TokenKind, to_epoch
from src.app.services.unit_of_work import UnitOfWork
from src.domain.clock import Clock, utcnow
from src.domain.entities import (
    Client,
    PropagationAction,
    PropagationStatus,
    PropagationTarget,
)
from src.domain.errors import ErrorCode

if TYPE_CHECKING:
    from src.app.services.session_store import SessionStore, TokenBundle

logger = logging.getLogger(__name__)


class PropagationCoordinator:
    """
    Plans, dispatches and tracks cookie directives.

    Business Rules:
    - Planning writes pending rows inside the caller's transaction
    - fan_out commits the dispatched state before any network I/O and
      records outcomes afterwards
    - Terminal targets never change again except through an explicit retry
    - Acknowledging a terminal target is a no-op
    """

    def __init__(
        self,
        uow: UnitOfWork,
        dispatcher: IDirectiveDispatcher,
        issuer: TokenIssuer,
        timeout_seconds: float = 3.0,
        max_concurrency: int = 8,
        ack_deadline_seconds: int = 30,
        clock: Clock = utcnow,
    ):
        self.uow = uow
        self.dispatcher = dispatcher
        self.issuer = issuer
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max(1, max_concurrency)
        self.ack_deadline = timedelta(seconds=ack_deadline_seconds)
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        uow: UnitOfWork,
        dispatcher: IDirectiveDispatcher,
        issuer: TokenIssuer,
        config,
        clock: Clock = utcnow,
    ) -> "PropagationCoordinator":
        return cls(
            uow,
            dispatcher,
            issuer,
            timeout_seconds=config.PROPAGATION_TIMEOUT_SECONDS,
            max_concurrency=config.PROPAGATION_MAX_CONCURRENCY,
            ack_deadline_seconds=config.PROPAGATION_ACK_DEADLINE_SECONDS,
            clock=clock,
        )

    @property
    def awaits_acknowledgement(self) -> bool:
        return self.dispatcher.awaits_acknowledgement

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    async def plan_login(
        self,
        primary: Tuple[Client, "TokenBundle"],
        peers: Iterable[Tuple[Client, "TokenBundle"]] = (),
    ) -> List[PropagationDirective]:
        """
        One set-cookie directive for the requesting client, then one for each
        peer in the active set. The primary directive is always first.
        """
        client, bundle = primary
        directives = [await self.plan_set_cookie(client, bundle, primary=True)]
        for peer, peer_bundle in peers:
            directives.append(await self.plan_set_cookie(peer, peer_bundle))
        return directives

    async def plan_set_cookie(
        self, client: Client, bundle: "TokenBundle", primary: bool = False
    ) -> PropagationDirective:
        target = await self.uow.propagation_targets.create(
            PropagationTarget(
                session_id=bundle.session_id,
                client_id=client.id,
                action=PropagationAction.set_cookie,
                target_url=client.set_cookie_url,
            )
        )
        return self._set_cookie_directive(target, bundle, primary)

    async def plan_logout(
        self, session_id: UUID, user_id: UUID, clients: Iterable[Client]
    ) -> List[PropagationDirective]:
        """One clear-cookie directive per client removed from the session."""
        directives = []
        for client in clients:
            target = await self.uow.propagation_targets.create(
                PropagationTarget(
                    session_id=session_id,
                    client_id=client.id,
                    action=PropagationAction.clear_cookie,
                    target_url=client.clear_cookie_url,
                )
            )
            directives.append(self._clear_cookie_directive(target, user_id))
        return directives

    def _set_cookie_directive(
        self, target: PropagationTarget, bundle: "TokenBundle", primary: bool = False
    ) -> PropagationDirective:
        data = {
            "action": PropagationAction.set_cookie.value,
            "targetId": str(target.id),
            "accessToken": bundle.access.token,
            "accessTokenExpiresAt": to_epoch(bundle.access.expires_at),
        }
        # Without a refresh token the endpoint leaves its refresh cookie alone
        if bundle.refresh is not None:
            data["refreshToken"] = bundle.refresh.token
            data["refreshTokenExpiresAt"] = to_epoch(bundle.refresh.expires_at)
        payload = self.issuer.mint(
            TokenKind.propagation,
            {
                "sub": str(bundle.user_id),
                "cid": str(bundle.client_id),
                "sid": str(bundle.session_id),
                "data": data,
            },
        )
        return PropagationDirective(
            target_id=target.id,
            session_id=target.session_id,
            client_id=target.client_id,
            action=PropagationAction.set_cookie,
            url=target.target_url,
            payload=payload.token,
            expires_at=payload.expires_at,
            primary=primary,
        )

    def _clear_cookie_directive(
        self, target: PropagationTarget, user_id: UUID
    ) -> PropagationDirective:
        payload = self.issuer.mint(
            TokenKind.propagation,
            {
                "sub": str(user_id),
                "cid": str(target.client_id),
                "sid": str(target.session_id),
                "data": {
                    "action": PropagationAction.clear_cookie.value,
                    "targetId": str(target.id),
                },
            },
        )
        return PropagationDirective(
            target_id=target.id,
            session_id=target.session_id,
            client_id=target.client_id,
            action=PropagationAction.clear_cookie,
            url=target.target_url,
            payload=payload.token,
            expires_at=payload.expires_at,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def fan_out(
        self, directives: List[PropagationDirective]
    ) -> List[DispatchOutcome]:
        """
        Mark targets dispatched, deliver concurrently, record outcomes.

        Never raises for a delivery failure; the returned outcomes are in the
        same order as ``directives``.
        """
        if not directives:
            return []

        now = self.clock()
        for directive in directives:
            target = await self.uow.propagation_targets.get_by_id(directive.target_id)
            if target is None:
                continue
            target.status = PropagationStatus.dispatched
            target.attempts += 1
            target.dispatched_at = now
            target.completed_at = None
            target.last_error = None
            target.ack_deadline_at = now + self.ack_deadline
            await self.uow.propagation_targets.update(target)
        await self.uow.commit()

        outcomes = await self.deliver(directives)

        await self.record(outcomes)
        await self.uow.commit()
        return outcomes

    async def deliver(
        self, directives: List[PropagationDirective]
    ) -> List[DispatchOutcome]:
        """Transport only: no store access, safe to run outside a transaction."""
        semaphore = asyncio.Semaphore(self.max_concurrency)
        return list(
            await asyncio.gather(
                *(self._deliver_one(directive, semaphore) for directive in directives)
            )
        )

    async def _deliver_one(
        self, directive: PropagationDirective, semaphore: asyncio.Semaphore
    ) -> DispatchOutcome:
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    self.dispatcher.dispatch(directive), timeout=self.timeout_seconds
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Propagation timeout: target={directive.target_id} "
                    f"client={directive.client_id} action={directive.action.value}"
                )
                return DispatchOutcome(
                    target_id=directive.target_id,
                    status=PropagationStatus.failed,
                    error_code=ErrorCode.PROPAGATION_TIMEOUT,
                    error=f"No response within {self.timeout_seconds:g}s",
                )
            except Exception as e:
                logger.warning(
                    f"Propagation failed: target={directive.target_id} "
                    f"client={directive.client_id} action={directive.action.value}: "
                    f"{type(e).__name__}"
                )
                return DispatchOutcome(
                    target_id=directive.target_id,
                    status=PropagationStatus.failed,
                    error_code=ErrorCode.PROPAGATION_FAILED,
                    error=f"{type(e).__name__}: {e}"[:512],
                )

    async def record(self, outcomes: Iterable[DispatchOutcome]) -> None:
        now = self.clock()
        for outcome in outcomes:
            if outcome.status == PropagationStatus.dispatched:
                continue
            target = await self.uow.propagation_targets.get_by_id(outcome.target_id)
            if target is None or target.status.is_terminal:
                continue
            self._complete(target, outcome.status, now, outcome.error_code, outcome.error)
            await self.uow.propagation_targets.update(target)

    # ------------------------------------------------------------------
    # Follow-up operations
    # ------------------------------------------------------------------

    async def acknowledge(
        self, target_id: UUID, payload: str, success: bool, error: Optional[str] = None
    ) -> Result[PropagationTarget]:
        """
        Record the target domain's response. Repeated acknowledgements of a
        terminal target return it unchanged.

        The caller proves it was handed the directive by presenting the
        signed payload minted for this target.
        """
        validated = self.issuer.validate(payload, TokenKind.propagation)
        if validated.is_err():
            return validated
        data = validated.value.data or {}
        if data.get("targetId") != str(target_id):
            return Return.err(
                Error(ErrorCode.TOKEN_INVALID, "Payload was not issued for this target")
            )

        target = await self.uow.propagation_targets.get_by_id(target_id)
        if target is None:
            return Return.err(
                Error(ErrorCode.TARGET_NOT_FOUND, "Propagation target not found")
            )
        if target.status.is_terminal:
            return Return.ok(target)

        if success:
            self._complete(target, PropagationStatus.acknowledged, self.clock())
        else:
            self._complete(
                target,
                PropagationStatus.failed,
                self.clock(),
                ErrorCode.PROPAGATION_FAILED,
                error or "Client endpoint reported failure",
            )
            logger.warning(
                f"Propagation failed: target={target.id} client={target.client_id} "
                f"action={target.action.value} (reported by client)"
            )
        target = await self.uow.propagation_targets.update(target)
        return Return.ok(target)

    async def retry(
        self, target_id: UUID, store: "SessionStore"
    ) -> Result[PropagationTarget]:
        """
        Explicitly re-deliver a failed directive on the same target row.

        Set-cookie retries re-mint credentials and only proceed while the
        client is active and still in the session's active set; clear-cookie
        retries are always allowed.
        """
        target = await self.uow.propagation_targets.get_by_id(target_id)
        if target is None:
            return Return.err(
                Error(ErrorCode.TARGET_NOT_FOUND, "Propagation target not found")
            )
        if target.status != PropagationStatus.failed:
            return Return.err(
                Error(
                    ErrorCode.TARGET_NOT_RETRYABLE,
                    f"Only failed targets can be retried (status: {target.status.value})",
                )
            )

        client = await self.uow.clients.get_by_id(target.client_id)
        if client is None:
            return Return.err(Error(ErrorCode.TARGET_NOT_RETRYABLE, "Client no longer exists"))

        if target.action == PropagationAction.set_cookie:
            if not client.active:
                return Return.err(
                    Error(ErrorCode.TARGET_NOT_RETRYABLE, "Client has been deactivated")
                )
            issued = await store.issue_tokens(target.session_id, target.client_id)
            if issued.is_err():
                return Return.err(
                    Error(ErrorCode.TARGET_NOT_RETRYABLE, issued.error.message)
                )
            target.target_url = client.set_cookie_url
            directive = self._set_cookie_directive(target, issued.value)
        else:
            session = await self.uow.sessions.get_by_id(target.session_id)
            if session is None:
                return Return.err(
                    Error(ErrorCode.TARGET_NOT_RETRYABLE, "Session no longer exists")
                )
            target.target_url = client.clear_cookie_url
            directive = self._clear_cookie_directive(target, session.user_id)

        target.status = PropagationStatus.pending
        target.completed_at = None
        await self.uow.propagation_targets.update(target)

        logger.info(f"Retrying propagation target {target.id} (attempt {target.attempts + 1})")
        await self.fan_out([directive])
        target = await self.uow.propagation_targets.get_by_id(target_id)
        return Return.ok(target)

    async def list_for_session(self, session_id: UUID) -> List[PropagationTarget]:
        return await self.uow.propagation_targets.get_by_session(session_id)

    async def expire_overdue(self, limit: int = 100) -> int:
        """Fail dispatched targets whose acknowledgement deadline has passed."""
        now = self.clock()
        overdue = await self.uow.propagation_targets.get_overdue(now, limit=limit)
        for target in overdue:
            self._complete(
                target,
                PropagationStatus.failed,
                now,
                ErrorCode.PROPAGATION_TIMEOUT,
                "Acknowledgement deadline elapsed",
            )
            await self.uow.propagation_targets.update(target)
            logger.warning(
                f"Propagation timeout: target={target.id} client={target.client_id} "
                f"action={target.action.value} (no acknowledgement)"
            )
        return len(overdue)

    def _complete(
        self,
        target: PropagationTarget,
        status: PropagationStatus,
        now,
        error_code: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        target.status = status
        target.completed_at = now
        target.last_error = f"{error_code}: {error}"[:512] if error_code else None
