import pytest
from httpx import AsyncClient

from tests.utils.api_helpers import ADMIN_HEADERS, API, bearer, login


@pytest.mark.asyncio
async def test_audit_trail_of_a_session(client: AsyncClient, seeded):
    """Audit Events

    Given alice logged in, refreshed and logged out
    When an operator lists her audit events
    Then they appear newest first with username, client and session
    """
    tokens = (await login(client, seeded.clients["app_a"])).json()
    await client.post(f"{API}/refreshAccessToken", json={"refreshToken": tokens["refreshToken"]})
    await client.delete(f"{API}/authentication", headers=bearer(tokens["accessToken"]))

    response = await client.get(
        f"{API}/admin/audit", params={"userId": str(seeded.users["alice"])}, headers=ADMIN_HEADERS
    )

    assert response.status_code == 200
    events = response.json()["events"]
    assert [e["action"] for e in events] == ["logout", "token_refresh", "login"]
    login_event = events[-1]
    assert login_event["username"] == "alice"
    assert login_event["client_id"] == str(seeded.clients["app_a"])
    assert login_event["session_id"] == tokens["sessionId"]
    assert login_event["timestamp"].endswith("Z")
    assert response.json()["next_cursor"] is None


@pytest.mark.asyncio
async def test_audit_pagination(client: AsyncClient, seeded):
    for _ in range(3):
        await login(client, seeded.clients["app_a"])

    page = await client.get(f"{API}/admin/audit", params={"limit": 2}, headers=ADMIN_HEADERS)
    assert len(page.json()["events"]) == 2
    cursor = page.json()["next_cursor"]
    assert cursor

    rest = await client.get(
        f"{API}/admin/audit", params={"limit": 2, "cursor": cursor}, headers=ADMIN_HEADERS
    )
    assert len(rest.json()["events"]) == 1
    assert rest.json()["next_cursor"] is None


@pytest.mark.asyncio
async def test_audit_requires_api_key(client: AsyncClient, seeded):
    response = await client.get(f"{API}/admin/audit")

    assert response.status_code == 401
