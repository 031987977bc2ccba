import asyncio
from uuid import UUID, uuid4

import pytest

from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.session_store import SessionStore
from src.app.services.token_issuer import TokenKind
from src.domain.entities import RefreshTokenStatus
from src.domain.errors import ErrorCode


@pytest.mark.asyncio
async def test_create_adds_client_before_handing_out_tokens(store, seeded):
    alice, app_a = seeded.users["alice"], seeded.clients["app_a"]

    result = await store.create(alice, app_a)

    grant = result.value
    assert grant.reused is False
    assert grant.bundle.client_id == app_a
    assert await store.is_active(grant.session.id, app_a)
    assert await store.active_clients(grant.session.id) == [app_a]


@pytest.mark.asyncio
async def test_create_reuses_live_session_with_peers(store, seeded, clock):
    alice = seeded.users["alice"]
    first = (await store.create(alice, seeded.clients["app_a"])).value
    clock.advance(minutes=5)

    second = (
        await store.create(
            alice,
            seeded.clients["app_b"],
            existing_session_id=first.session.id,
            include_peers=True,
        )
    ).value

    assert second.reused is True
    assert second.session.id == first.session.id
    assert [p.client_id for p in second.peers] == [seeded.clients["app_a"]]
    # Peers get a new access token and keep their own refresh token
    assert second.peers[0].access_token != first.bundle.access_token
    assert second.peers[0].refresh is None
    assert (await store.refresh(first.bundle.refresh_token)).is_ok()


@pytest.mark.asyncio
async def test_peer_refreshing_before_late_delivery_keeps_session(store, seeded):
    alice, app_a, app_b = seeded.users["alice"], seeded.clients["app_a"], seeded.clients["app_b"]
    first = (await store.create(alice, app_a)).value
    second = (
        await store.create(alice, app_b, existing_session_id=first.session.id, include_peers=True)
    ).value
    rotated = (await store.refresh(first.bundle.refresh_token)).value

    # The peer directive lands afterwards; app_a still holds its rotated token
    assert second.peers[0].refresh_token is None
    again = await store.refresh(rotated.refresh_token)

    assert again.is_ok()
    assert await store.is_active(first.session.id, app_a)
    assert await store.is_active(first.session.id, app_b)


@pytest.mark.asyncio
async def test_late_joiner_refresh_token_outlives_original_expiry(store, seeded, clock):
    alice, app_b = seeded.users["alice"], seeded.clients["app_b"]
    first = (await store.create(alice, seeded.clients["app_a"])).value
    clock.advance(days=29)
    joined = (await store.create(alice, app_b, existing_session_id=first.session.id)).value
    clock.advance(days=2)

    refreshed = await store.refresh(joined.bundle.refresh_token)

    assert refreshed.is_ok()
    assert joined.session.expires_at >= joined.bundle.refresh.expires_at
    assert await store.expire_stale() == 0
    assert await store.is_active(first.session.id, app_b)


@pytest.mark.asyncio
async def test_expired_session_is_inactive_before_collection(store, seeded, clock):
    app_a = seeded.clients["app_a"]
    grant = (await store.create(seeded.users["alice"], app_a)).value
    assert await store.is_active(grant.session.id, app_a)

    clock.advance(days=30)

    assert not await store.is_active(grant.session.id, app_a)
    assert await store.active_clients(grant.session.id) == [app_a]


@pytest.mark.asyncio
async def test_create_ignores_session_of_other_user(store, seeded):
    first = (await store.create(seeded.users["alice"], seeded.clients["app_a"])).value

    second = (
        await store.create(
            seeded.users["bob"], seeded.clients["app_b"], existing_session_id=first.session.id
        )
    ).value

    assert second.reused is False
    assert second.session.id != first.session.id
    assert await store.active_clients(first.session.id) == [seeded.clients["app_a"]]


@pytest.mark.asyncio
async def test_refresh_rotates_and_detects_reuse(store, uow, seeded):
    app_a = seeded.clients["app_a"]
    grant = (await store.create(seeded.users["alice"], app_a)).value
    r1 = grant.bundle.refresh_token

    rotated = await store.refresh(r1)
    assert rotated.is_ok()
    r2 = rotated.value.refresh_token
    assert rotated.value.refresh.jti != grant.bundle.refresh.jti

    old_row = await uow.refresh_tokens.get_by_id(UUID(grant.bundle.refresh.jti))
    assert old_row.status == RefreshTokenStatus.rotated
    assert str(old_row.replaced_by) == rotated.value.refresh.jti

    reuse = await store.refresh(r1)
    assert reuse.error.code == ErrorCode.REFRESH_REUSE_DETECTED
    assert reuse.error.details["removed_client_ids"] == [app_a]

    after = await store.refresh(r2)
    assert after.error.code == ErrorCode.TOKEN_REVOKED
    assert not await store.is_active(grant.session.id, app_a)
    session = await uow.sessions.get_by_id(grant.session.id)
    assert session.revoked_reason == "refresh_reuse"


@pytest.mark.asyncio
async def test_issue_tokens_replaces_refresh_token_of_active_client(store, uow, seeded):
    app_a = seeded.clients["app_a"]
    grant = (await store.create(seeded.users["alice"], app_a)).value

    issued = await store.issue_tokens(grant.session.id, app_a)

    assert issued.is_ok()
    assert issued.value.refresh.jti != grant.bundle.refresh.jti
    old_row = await uow.refresh_tokens.get_by_id(UUID(grant.bundle.refresh.jti))
    assert old_row.status == RefreshTokenStatus.revoked

    outsider = await store.issue_tokens(grant.session.id, seeded.clients["app_b"])
    assert outsider.error.code == ErrorCode.TOKEN_REVOKED


@pytest.mark.asyncio
async def test_remove_client_revokes_only_that_client(store, seeded):
    app_a, app_b = seeded.clients["app_a"], seeded.clients["app_b"]
    grant = (await store.create(seeded.users["alice"], app_a)).value
    session_id = grant.session.id
    bundle_b = (await store.add_client(session_id, app_b)).value

    removed = await store.remove_client(session_id, app_b)

    assert removed.value is True
    assert (await store.refresh(bundle_b.refresh_token)).error.code == ErrorCode.TOKEN_REVOKED
    assert (await store.refresh(grant.bundle.refresh_token)).is_ok()
    assert await store.active_clients(session_id) == [app_a]
    assert (await store.remove_client(session_id, app_b)).value is False


@pytest.mark.asyncio
async def test_revoked_session_never_gains_clients(store, seeded):
    grant = (await store.create(seeded.users["alice"], seeded.clients["app_a"])).value
    session_id = grant.session.id

    first = await store.revoke_all(session_id)
    second = await store.revoke_all(session_id)

    assert first.value == [seeded.clients["app_a"]]
    assert second.value == []
    added = await store.add_client(session_id, seeded.clients["app_b"])
    assert added.error.code == ErrorCode.SESSION_REVOKED

    fresh = (
        await store.create(
            seeded.users["alice"], seeded.clients["app_b"], existing_session_id=session_id
        )
    ).value
    assert fresh.reused is False
    assert fresh.session.id != session_id


@pytest.mark.asyncio
async def test_refresh_with_unknown_session(store, issuer, seeded):
    minted = issuer.mint(
        TokenKind.refresh,
        {
            "sub": str(seeded.users["alice"]),
            "cid": str(seeded.clients["app_a"]),
            "sid": str(uuid4()),
        },
    )

    result = await store.refresh(minted.token)

    assert result.error.code == ErrorCode.TOKEN_INVALID


@pytest.mark.asyncio
async def test_expire_stale_revokes_expired_sessions(store, seeded, clock):
    grant = (await store.create(seeded.users["alice"], seeded.clients["app_a"])).value
    live = (await store.create(seeded.users["bob"], seeded.clients["app_b"])).value
    clock.advance(days=20)
    await store.refresh(live.bundle.refresh_token)
    clock.advance(days=11)

    expired = await store.expire_stale()

    assert expired == 1
    assert not await store.is_active(grant.session.id, seeded.clients["app_a"])
    assert await store.is_active(live.session.id, seeded.clients["app_b"])
    assert await store.expire_stale() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("revoke_first", [False, True])
async def test_concurrent_add_and_revoke(session_factory, seeded, issuer, locks, clock, revoke_first):
    """A client joining while the session is revoked is either removed with it or rejected"""
    app_b = seeded.clients["app_b"]
    async with session_factory() as login_db, session_factory() as logout_db:
        async with SqlAlchemyUnitOfWork(login_db) as login_uow, SqlAlchemyUnitOfWork(
            logout_db
        ) as logout_uow:
            login_store = SessionStore(login_uow, issuer, locks=locks, clock=clock)
            logout_store = SessionStore(logout_uow, issuer, locks=locks, clock=clock)
            grant = (await login_store.create(seeded.users["alice"], seeded.clients["app_a"])).value
            session_id = grant.session.id

            add = login_store.add_client(session_id, app_b)
            revoke = logout_store.revoke_all(session_id)
            if revoke_first:
                revoked, added = await asyncio.gather(revoke, add)
            else:
                added, revoked = await asyncio.gather(add, revoke)

            assert await logout_store.active_clients(session_id) == []
            assert added.is_ok() == (app_b in revoked.value)
            if revoke_first:
                assert added.error.code == ErrorCode.SESSION_REVOKED
