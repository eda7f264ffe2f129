"""User management: role baselines, grant replacement and guards."""

import pytest
from httpx import AsyncClient

from conftest import headers_for
from lostfound.auth.permissions import ALL_PERMISSION_NAMES, ROLE_BASELINES
from lostfound.models import AccountRole

EMPLOYEE_BASELINE = ROLE_BASELINES[AccountRole.EMPLOYEE]
SUPERVISOR_BASELINE = ROLE_BASELINES[AccountRole.SUPERVISOR]


@pytest.mark.api
@pytest.mark.asyncio
class TestRoleLifecycle:

    async def test_register_then_promote(self, client: AsyncClient, admin_headers):
        """Register → employee baseline; promote → exactly the supervisor baseline."""
        registered = await client.post(
            "/api/auth/register",
            json={
                "employee_number": "EM777777",
                "password": "secret123",
                "first_name": "Rui",
                "last_name": "Costa",
            },
        )
        account_id = registered.json()["user"]["id"]
        assert len(registered.json()["user"]["permissions"]) == 7

        # Manual extra on top of the baseline
        extra = await client.put(
            f"/api/users/{account_id}/permissions",
            headers=admin_headers,
            json={"permissions": sorted(EMPLOYEE_BASELINE | {"generate_reports"})},
        )
        assert extra.status_code == 200
        assert "generate_reports" in extra.json()["permissions"]

        promoted = await client.put(
            f"/api/users/{account_id}",
            headers=admin_headers,
            json={"role": "supervisor"},
        )
        assert promoted.status_code == 200
        assert promoted.json()["role"] == "supervisor"
        assert set(promoted.json()["permissions"]) == SUPERVISOR_BASELINE
        assert len(promoted.json()["permissions"]) == 10

    async def test_promote_to_admin_grants_catalog(self, client: AsyncClient, employee, admin_headers):
        response = await client.put(
            f"/api/users/{employee.id}", headers=admin_headers, json={"role": "admin"}
        )
        assert set(response.json()["permissions"]) == ALL_PERMISSION_NAMES

    async def test_create_user_with_role(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/users/",
            headers=admin_headers,
            json={
                "employee_number": "SV000777",
                "password": "secret123",
                "first_name": "Sam",
                "last_name": "Reyes",
                "role": "supervisor",
            },
        )
        assert response.status_code == 201
        assert set(response.json()["permissions"]) == SUPERVISOR_BASELINE


@pytest.mark.api
@pytest.mark.asyncio
class TestGrantSets:

    async def test_unknown_permission_rejected(self, client: AsyncClient, employee, admin_headers):
        response = await client.put(
            f"/api/users/{employee.id}/permissions",
            headers=admin_headers,
            json={"permissions": ["create_items", "fly_planes"]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PERMISSIONS"

        current = await client.get(f"/api/users/{employee.id}", headers=admin_headers)
        assert set(current.json()["permissions"]) == EMPLOYEE_BASELINE

    async def test_stripped_baseline_heals_on_next_request(
        self, client: AsyncClient, employee, employee_headers, admin_headers
    ):
        stripped = await client.put(
            f"/api/users/{employee.id}/permissions",
            headers=admin_headers,
            json={"permissions": ["view_dashboard"]},
        )
        assert stripped.json()["permissions"] == ["view_dashboard"]

        me = await client.get("/api/auth/me", headers=employee_headers)
        assert set(me.json()["permissions"]) == EMPLOYEE_BASELINE

    async def test_admin_target_keeps_catalog(self, client: AsyncClient, admin, admin_headers):
        response = await client.put(
            f"/api/users/{admin.id}/permissions",
            headers=admin_headers,
            json={"permissions": ["view_dashboard"]},
        )
        assert set(response.json()["permissions"]) == ALL_PERMISSION_NAMES

    async def test_read_own_permissions(self, client: AsyncClient, employee, employee_headers):
        response = await client.get(f"/api/users/{employee.id}/permissions", headers=employee_headers)
        assert response.status_code == 200
        assert set(response.json()["permissions"]) == EMPLOYEE_BASELINE

    async def test_read_other_permissions_denied(
        self, client: AsyncClient, supervisor, employee_headers
    ):
        response = await client.get(
            f"/api/users/{supervisor.id}/permissions", headers=employee_headers
        )
        assert response.status_code == 403

    async def test_admin_reads_any_permissions(self, client: AsyncClient, supervisor, admin_headers):
        response = await client.get(f"/api/users/{supervisor.id}/permissions", headers=admin_headers)
        assert set(response.json()["permissions"]) == SUPERVISOR_BASELINE


@pytest.mark.api
@pytest.mark.asyncio
class TestUserGuards:

    async def test_manage_users_required(self, client: AsyncClient, supervisor_headers):
        response = await client.get("/api/users/", headers=supervisor_headers)
        assert response.status_code == 403

    async def test_granted_manage_users(
        self, client: AsyncClient, supervisor, admin_headers
    ):
        await client.put(
            f"/api/users/{supervisor.id}/permissions",
            headers=admin_headers,
            json={"permissions": sorted(SUPERVISOR_BASELINE | {"manage_users"})},
        )
        response = await client.get("/api/users/", headers=headers_for(supervisor))
        assert response.status_code == 200
        assert len(response.json()) == 2

    async def test_delete_user(self, client: AsyncClient, employee, admin_headers):
        response = await client.delete(f"/api/users/{employee.id}", headers=admin_headers)
        assert response.status_code == 204

        gone = await client.get("/api/auth/me", headers=headers_for(employee))
        assert gone.json()["error"]["code"] == "USER_NOT_FOUND"

    async def test_cannot_delete_self(self, client: AsyncClient, admin, admin_headers):
        response = await client.delete(f"/api/users/{admin.id}", headers=admin_headers)
        assert response.status_code == 400

    async def test_reset_other_password(self, client: AsyncClient, employee, admin_headers):
        response = await client.post(
            f"/api/users/{employee.id}/reset-password",
            headers=admin_headers,
            json={"new_password": "reset-by-admin"},
        )
        assert response.status_code == 200
        login = await client.post(
            "/api/auth/login",
            json={"employee_number": employee.employee_number, "password": "reset-by-admin"},
        )
        assert login.status_code == 200
