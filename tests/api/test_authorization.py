"""Authorization check API tests (caller checks its own permissions)."""

from httpx import AsyncClient

from tests.conftest import TEST_TENANT_ID, make_headers

# Each client sends from a distinct forwarded address so the login-tier
# limiter on /api/v1/authorization never interferes with these checks.


def _headers(user_id: str, address: str, **kwargs) -> dict[str, str]:
    return {**make_headers(user_id, **kwargs), "X-Forwarded-For": address}


async def test_check_allowed_and_denied(
    client: AsyncClient, seeded_roles: dict[str, str]
) -> None:
    headers = _headers("renter-1", "198.51.100.1", role_id=seeded_roles["tenant"])
    response = await client.post(
        "/api/v1/authorization/check", headers=headers, json={"resource": "lease", "action": "read"}
    )
    assert response.status_code == 200
    assert response.json() == {"allowed": True}

    response = await client.post(
        "/api/v1/authorization/check", headers=headers, json={"resource": "lease", "action": "delete"}
    )
    assert response.status_code == 200
    assert response.json() == {"allowed": False}


async def test_conditional_permission_uses_entity(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """A conditional grant allows only for entities whose attributes satisfy it."""
    perm = (
        await client.post(
            "/api/v1/permissions",
            headers=admin_headers,
            json={
                "resource": "lease",
                "action": "renew",
                "conditions": [{"field": "owner_id", "operator": "eq", "value": "owner-3"}],
            },
        )
    ).json()
    role = (
        await client.post(
            "/api/v1/roles",
            headers=admin_headers,
            json={"code": "renewer", "name": "Renewer", "permission_codes": [perm["code"]]},
        )
    ).json()
    headers = _headers("owner-3", "198.51.100.2", role_id=role["id"])

    own = {"resource": "lease", "action": "renew", "entity": {"owner_id": "owner-3"}}
    other = {"resource": "lease", "action": "renew", "entity": {"owner_id": "owner-4"}}
    missing = {"resource": "lease", "action": "renew"}
    for body, expected in ((own, True), (other, False), (missing, False)):
        response = await client.post("/api/v1/authorization/check", headers=headers, json=body)
        assert response.json() == {"allowed": expected}


async def test_check_all_and_check_any(
    client: AsyncClient, seeded_roles: dict[str, str]
) -> None:
    headers = _headers("renter-2", "198.51.100.3", role_id=seeded_roles["tenant"])
    mixed = {"checks": [{"resource": "lease", "action": "read"}, {"resource": "unit", "action": "delete"}]}

    response = await client.post("/api/v1/authorization/check-all", headers=headers, json=mixed)
    assert response.json() == {"allowed": False}
    response = await client.post("/api/v1/authorization/check-any", headers=headers, json=mixed)
    assert response.json() == {"allowed": True}

    response = await client.post("/api/v1/authorization/check-all", headers=headers, json={"checks": []})
    assert response.json() == {"allowed": True}
    response = await client.post("/api/v1/authorization/check-any", headers=headers, json={"checks": []})
    assert response.json() == {"allowed": False}


async def test_user_without_roles_is_denied(client: AsyncClient, seeded_roles: dict[str, str]) -> None:
    headers = _headers("stranger", "198.51.100.4")
    response = await client.post(
        "/api/v1/authorization/check", headers=headers, json={"resource": "lease", "action": "read"}
    )
    assert response.json() == {"allowed": False}


async def test_missing_token_returns_401(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/authorization/check",
        headers={"X-Tenant-ID": TEST_TENANT_ID, "X-Forwarded-For": "198.51.100.5"},
        json={"resource": "lease", "action": "read"},
    )
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_invalid_token_returns_401(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/authorization/check",
        headers={
            "Authorization": "Bearer not-a-jwt",
            "X-Tenant-ID": TEST_TENANT_ID,
            "X-Forwarded-For": "198.51.100.6",
        },
        json={"resource": "lease", "action": "read"},
    )
    assert response.status_code == 401


async def test_role_claim_with_key_separator_returns_401(client: AsyncClient) -> None:
    """A role id that cannot form a cache key is an invalid token, not a server error."""
    response = await client.post(
        "/api/v1/authorization/check",
        headers=_headers("renter-1", "198.51.100.9", role_id="role:admin"),
        json={"resource": "lease", "action": "read"},
    )
    assert response.status_code == 401


async def test_tenant_header_must_match_token(client: AsyncClient) -> None:
    headers = _headers("renter-1", "198.51.100.7")
    headers["X-Tenant-ID"] = "tenant-other"
    response = await client.post(
        "/api/v1/authorization/check", headers=headers, json={"resource": "lease", "action": "read"}
    )
    assert response.status_code == 403


async def test_missing_or_malformed_tenant_header_returns_400(client: AsyncClient) -> None:
    headers = _headers("renter-1", "198.51.100.8")
    del headers["X-Tenant-ID"]
    body = {"resource": "lease", "action": "read"}
    response = await client.post("/api/v1/authorization/check", headers=headers, json=body)
    assert response.status_code == 400
    headers["X-Tenant-ID"] = "bad tenant!"
    response = await client.post("/api/v1/authorization/check", headers=headers, json=body)
    assert response.status_code == 400
