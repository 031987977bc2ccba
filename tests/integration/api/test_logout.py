import pytest
from httpx import AsyncClient

from tests.utils.api_helpers import (
    ADMIN_HEADERS,
    API,
    bearer,
    login,
    sso_cookie_header,
)


async def _login_everywhere(ac: AsyncClient, seeded):
    """alice signs into app_a, then app_b and app_c through single sign-on."""
    first = await login(ac, seeded.clients["app_a"])
    cookie = sso_cookie_header(first)
    second = await login(ac, seeded.clients["app_b"], headers=cookie)
    third = await login(ac, seeded.clients["app_c"], headers=cookie)
    return first.json(), second.json(), third.json()


@pytest.mark.asyncio
async def test_global_logout_with_unreachable_client(http_client: AsyncClient, seeded, domains):
    """Global Logout

    Given alice's session spans app_a, app_b and app_c
    And app_b's cookie endpoint is unreachable
    When she logs out
    Then logout succeeds and the session is revoked everywhere
    And app_b's clear-cookie directive is recorded as failed
    And an operator can retry it once app_b is back
    """
    a, b, c = await _login_everywhere(http_client, seeded)
    assert a["sessionId"] == b["sessionId"] == c["sessionId"]
    domains.requests.clear()
    domains.unreachable.add("app-b.example.com")

    response = await http_client.delete(
        f"{API}/authentication", headers=bearer(a["accessToken"])
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    status_by_client = {d["clientId"]: d["status"] for d in data["propagation"]}
    assert status_by_client == {
        str(seeded.clients["app_a"]): "acknowledged",
        str(seeded.clients["app_b"]): "failed",
        str(seeded.clients["app_c"]): "acknowledged",
    }
    assert sorted(domains.hosts()) == ["app-a.example.com", "app-c.example.com"]
    assert {r.url.path for r in domains.requests} == {"/sso/cookies/clear", "/auth/clear"}

    for tokens in (a, b, c):
        validate = await http_client.post(
            f"{API}/validate", headers=bearer(tokens["accessToken"])
        )
        assert validate.status_code == 401
        assert validate.json()["error"]["code"] == "TOKEN_REVOKED"

    failed_id = next(
        d["targetId"]
        for d in data["propagation"]
        if d["clientId"] == str(seeded.clients["app_b"])
    )
    targets = await http_client.get(
        f"{API}/admin/propagation",
        params={"sessionId": a["sessionId"]},
        headers=ADMIN_HEADERS,
    )
    failed = next(t for t in targets.json()["targets"] if t["targetId"] == failed_id)
    assert failed["status"] == "failed"
    assert failed["lastError"].startswith("PROPAGATION_FAILED")

    domains.unreachable.clear()
    retry = await http_client.post(
        f"{API}/admin/propagation/{failed_id}/retry", headers=ADMIN_HEADERS
    )
    assert retry.status_code == 200
    assert retry.json()["status"] == "acknowledged"
    assert retry.json()["attempts"] == 2
    assert domains.hosts()[-1] == "app-b.example.com"

    again = await http_client.post(
        f"{API}/admin/propagation/{failed_id}/retry", headers=ADMIN_HEADERS
    )
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "TARGET_NOT_RETRYABLE"


@pytest.mark.asyncio
async def test_logout_twice_is_harmless(client: AsyncClient, seeded):
    tokens = (await login(client, seeded.clients["app_a"])).json()

    first = await client.delete(f"{API}/authentication", headers=bearer(tokens["accessToken"]))
    second = await client.delete(f"{API}/authentication", headers=bearer(tokens["accessToken"]))

    assert first.status_code == 200
    assert len(first.json()["propagation"]) == 1
    assert first.json()["propagation"][0]["status"] == "dispatched"
    assert second.status_code == 200
    assert second.json()["propagation"] == []


@pytest.mark.asyncio
async def test_logout_with_sso_cookie(client: AsyncClient, seeded):
    response = await login(client, seeded.clients["app_a"])

    logout = await client.delete(f"{API}/authentication", headers=sso_cookie_header(response))

    assert logout.status_code == 200
    assert logout.json()["sessionId"] == response.json()["sessionId"]
    assert logout.json()["redirectUrl"] == "http://localhost:3000/login"
    cleared = [h for h in logout.headers.get_list("set-cookie") if h.startswith("sso_session=")]
    assert cleared and "max-age=0" in cleared[0].lower()


@pytest.mark.asyncio
async def test_logout_without_credentials(client: AsyncClient, seeded):
    response = await client.delete(f"{API}/authentication")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_client_scoped_logout_keeps_other_clients(client: AsyncClient, seeded):
    """Given alice is in app_a and app_b, logging out of app_b leaves app_a signed in"""
    first = await login(client, seeded.clients["app_a"])
    second = await login(client, seeded.clients["app_b"], headers=sso_cookie_header(first))

    response = await client.delete(
        f"{API}/authentication",
        params={"scope": "client"},
        headers=bearer(second.json()["accessToken"]),
    )

    assert response.status_code == 200
    assert [d["clientId"] for d in response.json()["propagation"]] == [
        str(seeded.clients["app_b"])
    ]
    kept = await client.post(f"{API}/validate", headers=bearer(first.json()["accessToken"]))
    gone = await client.post(f"{API}/validate", headers=bearer(second.json()["accessToken"]))
    assert kept.status_code == 200
    assert gone.status_code == 401
