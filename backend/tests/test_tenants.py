"""Tenant registration, subdomains and platform approval."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.tenant.tenant_role import TenantRole
from app.tenancy import normalize_subdomain, validate_subdomain


@pytest.mark.unit
class TestSubdomainRules:

    def test_normalize(self):
        assert normalize_subdomain("  Harbour Freight Co. ") == "harbour-freight-co"

    @pytest.mark.parametrize("subdomain", ["ab", "has.dot", "x" * 64])
    def test_invalid_format(self, subdomain):
        assert "3-63 characters" in validate_subdomain(subdomain)

    def test_reserved(self):
        assert validate_subdomain("admin") == "This subdomain is reserved and cannot be used"

    def test_valid(self):
        assert validate_subdomain("pacific-cold-chain") is None


@pytest.mark.api
@pytest.mark.asyncio
class TestRegistration:

    async def test_register_is_public_and_unapproved(self, client: AsyncClient):
        response = await client.post(
            "/api/tenants",
            json={"company_name": "Pacific Cold Chain", "email": "hello@pcc.test", "privacy_consent": True},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["approved"] is False
        assert data["onboarding_step"] == "submitted"
        assert data["subdomain"] is None

    async def test_register_requires_name_and_email(self, client: AsyncClient):
        response = await client.post("/api/tenants", json={"company_name": "No Email Pty"})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Company name and email are required"

    async def test_check_subdomain(self, client: AsyncClient, tenant_a):
        response = await client.get("/api/tenants/check-subdomain", params={"subdomain": "Harbour"})
        assert response.json() == {
            "available": False,
            "subdomain": "harbour",
            "message": "This subdomain is already taken",
        }

        response = await client.get("/api/tenants/check-subdomain", params={"subdomain": "api"})
        assert response.json()["available"] is False

        response = await client.get("/api/tenants/check-subdomain", params={"subdomain": "coastal"})
        assert response.json()["available"] is True

    async def test_check_subdomain_requires_parameter(self, client: AsyncClient):
        response = await client.get("/api/tenants/check-subdomain")
        assert response.status_code == 400


@pytest.mark.api
@pytest.mark.asyncio
class TestApproval:

    async def _register(self, client, name="Pacific Cold Chain") -> dict:
        response = await client.post(
            "/api/tenants", json={"company_name": name, "email": "hello@pcc.test"}
        )
        return response.json()

    async def test_approve_assigns_subdomain_and_seeds_roles(
        self, client: AsyncClient, superadmin_headers, db_session
    ):
        tenant = await self._register(client)
        response = await client.post(
            f"/api/tenants/{tenant['id']}/approve", headers=superadmin_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["tenant"]["approved"] is True
        assert data["tenant"]["subdomain"] == "pacific-cold-chain"
        assert sorted(data["roles_created"]) == ["Admin", "Operator", "Viewer"]

        roles = (await db_session.execute(
            select(TenantRole).where(TenantRole.tenant_id == tenant["id"])
        )).scalars().all()
        assert {r.name for r in roles} == {"Admin", "Operator", "Viewer"}
        assert all(r.is_system_role for r in roles)
        viewer = next(r for r in roles if r.name == "Viewer")
        assert "containers.write" not in viewer.permissions

    async def test_taken_subdomain_gets_a_suffix(
        self, client: AsyncClient, superadmin_headers, tenant_a
    ):
        tenant = await self._register(client, name="Harbour")
        response = await client.post(
            f"/api/tenants/{tenant['id']}/approve", headers=superadmin_headers
        )
        assert response.json()["tenant"]["subdomain"] == "harbour-1"

    async def test_approve_twice(self, client: AsyncClient, superadmin_headers):
        tenant = await self._register(client)
        url = f"/api/tenants/{tenant['id']}/approve"
        await client.post(url, headers=superadmin_headers)

        response = await client.post(url, headers=superadmin_headers)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "ALREADY_APPROVED"

    async def test_only_superadmin_may_approve(self, client: AsyncClient, auth_headers):
        tenant = await self._register(client)
        response = await client.post(f"/api/tenants/{tenant['id']}/approve", headers=auth_headers)
        assert response.status_code == 403

    async def test_list_filters_by_approval(
        self, client: AsyncClient, superadmin_headers, tenant_a
    ):
        await self._register(client)
        response = await client.get(
            "/api/tenants", params={"approved": False}, headers=superadmin_headers
        )
        assert response.status_code == 200
        names = [t["company_name"] for t in response.json()["items"]]
        assert names == ["Pacific Cold Chain"]

    async def test_deactivated_tenant_cannot_be_approved(
        self, client: AsyncClient, superadmin_headers
    ):
        tenant = await self._register(client)
        response = await client.delete(f"/api/tenants/{tenant['id']}", headers=superadmin_headers)
        assert response.status_code == 200

        response = await client.post(
            f"/api/tenants/{tenant['id']}/approve", headers=superadmin_headers
        )
        assert response.status_code == 404
