from uuid import uuid4

import pytest
from httpx import AsyncClient

from tests.utils.api_helpers import ADMIN_HEADERS, API
from tests.utils.json_compare import exclude_keys


@pytest.mark.asyncio
async def test_client_lookup(client: AsyncClient, seeded):
    response = await client.get(f"{API}/client", params={"clientId": str(seeded.clients["app_c"])})

    assert response.status_code == 200
    assert exclude_keys(response.json()["client"]) == {
        "name": "App C",
        "baseDomain": "https://app-c.example.com:8443",
        "platform": "web",
        "description": None,
        "logoUrl": None,
        "setCookieUrl": "https://app-c.example.com:8443/auth/set",
        "clearCookieUrl": "https://app-c.example.com:8443/auth/clear",
        "active": True,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("client_id", [str(uuid4()), "not-a-uuid", None])
async def test_client_lookup_unknown(client: AsyncClient, seeded, client_id):
    params = {"clientId": client_id} if client_id else {}

    response = await client.get(f"{API}/client", params=params)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_register_client(client: AsyncClient, seeded):
    """Client Registration

    Given an operator with the admin API key
    When they register a client with a mixed-case origin and default port
    Then the origin is stored normalized
    And cookie endpoints default to the configured paths
    And the client is publicly resolvable
    """
    response = await client.post(
        f"{API}/admin/clients",
        json={"name": "Shop", "baseDomain": "HTTPS://Shop.Example.COM:443"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 201
    created = response.json()["client"]
    assert created["baseDomain"] == "https://shop.example.com"
    assert created["setCookieUrl"] == "https://shop.example.com/sso/cookies"
    assert created["clearCookieUrl"] == "https://shop.example.com/sso/cookies/clear"

    lookup = await client.get(f"{API}/client", params={"clientId": created["clientId"]})
    assert lookup.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Bad", "baseDomain": "shop.example.com"},
        {"name": "Bad", "baseDomain": "ftp://shop.example.com"},
        {"name": "Bad", "baseDomain": "https://shop.example.com/path"},
        {"name": "Bad", "baseDomain": "https://shop.example.com", "setCookiePath": "cookies"},
    ],
)
async def test_register_client_invalid_domain(client: AsyncClient, seeded, payload):
    response = await client.post(f"{API}/admin/clients", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DOMAIN"


@pytest.mark.asyncio
async def test_admin_endpoints_require_api_key(client: AsyncClient, seeded):
    missing = await client.get(f"{API}/admin/clients")
    wrong = await client.get(f"{API}/admin/clients", headers={"X-Admin-API-Key": "nope"})

    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_update_client(client: AsyncClient, seeded):
    client_id = str(seeded.clients["app_a"])

    response = await client.patch(
        f"{API}/admin/clients/{client_id}",
        json={"name": "App A (renamed)", "clearCookiePath": "/logout/cookies"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    updated = response.json()["client"]
    assert updated["clientId"] == client_id
    assert updated["name"] == "App A (renamed)"
    assert updated["baseDomain"] == "https://app-a.example.com"
    assert updated["clearCookieUrl"] == "https://app-a.example.com/logout/cookies"


@pytest.mark.asyncio
async def test_update_unknown_client(client: AsyncClient, seeded):
    response = await client.patch(
        f"{API}/admin/clients/{uuid4()}", json={"name": "x"}, headers=ADMIN_HEADERS
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "CLIENT_NOT_FOUND"


@pytest.mark.asyncio
async def test_deactivate_and_reactivate_client(client: AsyncClient, seeded):
    """Deactivated clients disappear from public lookup and cannot log in"""
    client_id = str(seeded.clients["app_b"])

    deactivated = await client.post(
        f"{API}/admin/clients/{client_id}/deactivate", headers=ADMIN_HEADERS
    )
    assert deactivated.status_code == 200
    assert deactivated.json()["client"]["active"] is False

    lookup = await client.get(f"{API}/client", params={"clientId": client_id})
    assert lookup.status_code == 404

    login = await client.post(
        f"{API}/authentication",
        params={"clientId": client_id},
        json={"username": "alice", "password": "CorrectHorse1!"},
    )
    assert login.status_code == 400
    assert login.json()["error"]["code"] == "INVALID_CLIENT"

    admin_view = await client.get(f"{API}/admin/clients/{client_id}", headers=ADMIN_HEADERS)
    assert admin_view.status_code == 200
    assert admin_view.json()["client"]["active"] is False

    active_only = await client.get(f"{API}/admin/clients", headers=ADMIN_HEADERS)
    everything = await client.get(
        f"{API}/admin/clients", params={"includeInactive": "true"}, headers=ADMIN_HEADERS
    )
    assert len(active_only.json()["clients"]) == 2
    assert len(everything.json()["clients"]) == 3

    reactivated = await client.post(
        f"{API}/admin/clients/{client_id}/reactivate", headers=ADMIN_HEADERS
    )
    assert reactivated.json()["client"]["active"] is True
    lookup = await client.get(f"{API}/client", params={"clientId": client_id})
    assert lookup.status_code == 200
