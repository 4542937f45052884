"""Permission API tests: create with conditions, update, delete, tenant scoping."""

from fastapi import FastAPI
from httpx import AsyncClient

from app.infrastructure.services import TenantInitializationService
from tests.conftest import make_headers


async def test_create_permission_with_conditions(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """POST /api/v1/permissions stores conditions and returns the code."""
    response = await client.post(
        "/api/v1/permissions",
        headers=admin_headers,
        json={
            "resource": "inspection",
            "action": "approve",
            "description": "Approve own inspections",
            "conditions": [{"field": "inspector_id", "operator": "eq", "value": "u-9"}],
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["code"] == "inspection:approve"
    assert data["conditions"] == [{"field": "inspector_id", "operator": "eq", "value": "u-9"}]

    response = await client.get(f"/api/v1/permissions/{data['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["description"] == "Approve own inspections"


async def test_duplicate_permission_returns_400(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.post(
        "/api/v1/permissions", headers=admin_headers, json={"resource": "lease", "action": "read"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_invalid_operator_is_rejected(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.post(
        "/api/v1/permissions",
        headers=admin_headers,
        json={
            "resource": "lease",
            "action": "sign",
            "conditions": [{"field": "status", "operator": "like", "value": "draft"}],
        },
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_membership_condition_with_scalar_value_is_rejected(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """not_in with a single string would exclude nothing; the API refuses it."""
    response = await client.post(
        "/api/v1/permissions",
        headers=admin_headers,
        json={
            "resource": "contracts",
            "action": "archive",
            "conditions": [{"field": "status", "operator": "not_in", "value": "archived"}],
        },
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_list_permissions_filters_by_resource(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.get(
        "/api/v1/permissions", headers=admin_headers, params={"resource": "payment"}
    )
    assert response.status_code == 200
    codes = {p["code"] for p in response.json()}
    assert codes == {f"payment:{a}" for a in ("create", "read", "update", "delete", "list")}


async def test_update_and_delete_permission(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    created = (
        await client.post(
            "/api/v1/permissions", headers=admin_headers, json={"resource": "key", "action": "issue"}
        )
    ).json()
    response = await client.patch(
        f"/api/v1/permissions/{created['id']}",
        headers=admin_headers,
        json={"conditions": [{"field": "building", "operator": "in", "value": ["A", "B"]}]},
    )
    assert response.status_code == 200
    assert response.json()["conditions"][0]["operator"] == "in"

    response = await client.delete(f"/api/v1/permissions/{created['id']}", headers=admin_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/v1/permissions/{created['id']}", headers=admin_headers)
    assert response.status_code == 404


async def test_permissions_are_tenant_scoped(
    app: FastAPI, client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    """A permission id from one tenant is not found by another tenant's admin."""
    created = (
        await client.post(
            "/api/v1/permissions", headers=admin_headers, json={"resource": "gate", "action": "open"}
        )
    ).json()
    seeder = TenantInitializationService(
        app.state.role_repo, app.state.permission_repo, app.state.assignment_repo
    )
    await seeder.initialize_tenant_rbac("tenant-other")
    await seeder.assign_admin_role("tenant-other", "other-admin")

    other = make_headers("other-admin", tenant_id="tenant-other")
    response = await client.get(f"/api/v1/permissions/{created['id']}", headers=other)
    assert response.status_code == 404


async def test_tenant_user_cannot_manage_permissions(
    client: AsyncClient, seeded_roles: dict[str, str]
) -> None:
    headers = make_headers("renter-1", role_id=seeded_roles["tenant"])
    response = await client.post(
        "/api/v1/permissions", headers=headers, json={"resource": "x", "action": "y"}
    )
    assert response.status_code == 403
