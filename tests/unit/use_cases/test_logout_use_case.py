"""
Unit tests for Logout Use Case
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from libs.result import Return
from src.app.services.token_issuer import TokenKind
from src.app.use_cases.auth import SCOPE_CLIENT, LogoutUseCase
from src.domain.entities import PropagationAction, PropagationStatus
from src.domain.errors import ErrorCode
from tests.fixtures.builders import make_client, make_directive, outcome_for


@pytest.fixture
def setup(mock_uow, issuer, clock):
    user_id = uuid4()
    session_id = uuid4()
    app_a, app_b, app_c = make_client("app-a"), make_client("app-b"), make_client("app-c")
    directives = [
        make_directive(c, session_id, PropagationAction.clear_cookie)
        for c in (app_a, app_b, app_c)
    ]
    calls = []

    store = MagicMock()
    store.issuer = issuer
    store.clock = clock

    async def revoke_all(sid, reason="logout"):
        calls.append("revoke")
        return Return.ok([app_a.id, app_b.id, app_c.id])

    async def remove_client(sid, cid):
        calls.append("remove")
        return Return.ok(True)

    store.revoke_all = AsyncMock(side_effect=revoke_all)
    store.remove_client = AsyncMock(side_effect=remove_client)

    coordinator = MagicMock()

    async def plan_logout(sid, uid, clients):
        calls.append("plan")
        return [d for d in directives if d.client_id in {c.id for c in clients}]

    async def fan_out(ds):
        calls.append("fan_out")
        return [
            outcome_for(d, PropagationStatus.failed, ErrorCode.PROPAGATION_FAILED)
            if d.client_id == app_b.id
            else outcome_for(d, PropagationStatus.acknowledged)
            for d in ds
        ]

    coordinator.plan_logout = AsyncMock(side_effect=plan_logout)
    coordinator.fan_out = AsyncMock(side_effect=fan_out)

    async def get_many(ids):
        return [c for c in (app_a, app_b, app_c) if c.id in ids]

    mock_uow.clients.get_many = AsyncMock(side_effect=get_many)

    claims = {"sub": str(user_id), "cid": str(app_a.id), "sid": str(session_id)}
    return {
        "use_case": LogoutUseCase(mock_uow, store, coordinator, "https://sso.example.com/login"),
        "store": store,
        "coordinator": coordinator,
        "calls": calls,
        "session_id": session_id,
        "clients": (app_a, app_b, app_c),
        "access_token": issuer.mint(TokenKind.access, claims).token,
        "sso_token": issuer.mint(
            TokenKind.sso_session, {"sub": str(user_id), "sid": str(session_id)}
        ).token,
    }


@pytest.mark.asyncio
async def test_global_logout_revokes_before_dispatch(setup, mock_uow):
    """Unreachable client is recorded as failed and logout still succeeds"""
    s = setup
    app_a, app_b, app_c = s["clients"]

    result = await s["use_case"].execute(access_token=s["access_token"])

    assert result.is_ok()
    outcome = result.value
    assert outcome.response.success is True
    assert outcome.response.session_id == str(s["session_id"])
    assert outcome.response.redirect_url == "https://sso.example.com/login"
    assert outcome.clear_session_cookie is True
    statuses = {p.client_id: p.status for p in outcome.response.propagation}
    assert statuses == {app_a.id: "acknowledged", app_b.id: "failed", app_c.id: "acknowledged"}

    assert s["calls"] == ["revoke", "plan", "fan_out"]
    s["store"].revoke_all.assert_awaited_once_with(s["session_id"], reason="logout")
    audit = mock_uow.audit_events.create.call_args[0][0]
    assert audit.action == "logout"
    assert len(audit.event_metadata["removed_client_ids"]) == 3


@pytest.mark.asyncio
async def test_client_scope_only_removes_presenting_client(setup):
    s = setup
    app_a = s["clients"][0]

    result = await s["use_case"].execute(access_token=s["access_token"], scope=SCOPE_CLIENT)

    assert result.is_ok()
    s["store"].remove_client.assert_awaited_once_with(s["session_id"], app_a.id)
    s["store"].revoke_all.assert_not_awaited()
    assert [p.client_id for p in result.value.response.propagation] == [app_a.id]
    assert result.value.clear_session_cookie is False


@pytest.mark.asyncio
async def test_sso_cookie_identifies_session(setup):
    s = setup

    result = await s["use_case"].execute(access_token="garbage", sso_token=s["sso_token"])

    assert result.is_ok()
    s["store"].revoke_all.assert_awaited_once_with(s["session_id"], reason="logout")


@pytest.mark.asyncio
async def test_client_scope_requires_client_token(setup):
    s = setup

    result = await s["use_case"].execute(sso_token=s["sso_token"], scope=SCOPE_CLIENT)

    assert result.error.code == ErrorCode.TOKEN_INVALID


@pytest.mark.asyncio
async def test_no_credential_is_rejected(setup):
    s = setup

    result = await s["use_case"].execute()

    assert result.is_err()
    assert result.error.code == ErrorCode.TOKEN_INVALID
    s["store"].revoke_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_repeated_logout_succeeds_with_nothing_to_clear(setup):
    s = setup
    s["store"].revoke_all = AsyncMock(return_value=Return.ok([]))

    result = await s["use_case"].execute(access_token=s["access_token"])

    assert result.is_ok()
    assert result.value.response.propagation == []
