"""Pytest configuration and fixtures for Containa tests.

Provides reusable fixtures for the database, authentication, tenants and
warehouse stock. Tests run against an in-memory SQLite database; every
test gets a fresh schema.
"""

import os

os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import settings
from app.database import PublicBase, TenantBase, get_db
from app.auth.context import AuthContext
from app.auth.jwt import create_access_token
from app.auth.permissions import resolve_permissions
from app.models.public.tenant import Tenant
from app.models.public.user import User, UserRole
from app.models.tenant.customer import Customer, PayingCustomer
from app.models.tenant.inbound import InboundInventory, InboundProductLine
from app.models.tenant.outbound import OutboundInventory, OutboundProductLine
from app.models.tenant.sku import SKU
from app.models.tenant.stock import PutAwayStock
from app.models.tenant.warehouse import Warehouse


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database with every table."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(PublicBase.metadata.create_all)
        await conn.run_sync(TenantBase.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client whose requests each run in their own committed session."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Tenants & users ──────────────────────────────────────────────

async def _make_tenant(db: AsyncSession, name: str, subdomain: str) -> Tenant:
    tenant = Tenant(
        company_name=name,
        email=f"ops@{subdomain}.test",
        subdomain=subdomain,
        approved=True,
        onboarding_step="approved",
    )
    db.add(tenant)
    await db.commit()
    return tenant


async def _make_user(db: AsyncSession, email: str, role: UserRole, tenant: Tenant | None) -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        role=role.value,
        is_active=True,
        tenant_id=tenant.id if tenant else None,
    )
    db.add(user)
    await db.commit()
    return user


def _headers(user: User) -> dict:
    token = create_access_token(
        user_id=user.id,
        role=user.role,
        permissions=resolve_permissions(user.role),
        tenant_id=user.tenant_id,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def tenant_a(db_session: AsyncSession) -> Tenant:
    return await _make_tenant(db_session, "Harbour Freight", "harbour")


@pytest_asyncio.fixture
async def tenant_b(db_session: AsyncSession) -> Tenant:
    return await _make_tenant(db_session, "Inland Logistics", "inland")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, tenant_a: Tenant) -> User:
    return await _make_user(db_session, "admin@harbour.test", UserRole.TENANT_ADMIN, tenant_a)


@pytest_asyncio.fixture
async def viewer_user(db_session: AsyncSession, tenant_a: Tenant) -> User:
    return await _make_user(db_session, "viewer@harbour.test", UserRole.VIEWER, tenant_a)


@pytest_asyncio.fixture
async def other_admin(db_session: AsyncSession, tenant_b: Tenant) -> User:
    return await _make_user(db_session, "admin@inland.test", UserRole.TENANT_ADMIN, tenant_b)


@pytest_asyncio.fixture
async def superadmin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "root@containa.test", UserRole.SUPERADMIN, None)


@pytest.fixture
def auth_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def viewer_headers(viewer_user: User) -> dict:
    return _headers(viewer_user)


@pytest.fixture
def other_headers(other_admin: User) -> dict:
    return _headers(other_admin)


@pytest.fixture
def superadmin_headers(superadmin_user: User) -> dict:
    return _headers(superadmin_user)


@pytest.fixture
def ctx(admin_user: User) -> AuthContext:
    """AuthContext for calling services directly as the tenant admin."""
    return AuthContext(
        user_id=admin_user.id,
        role=admin_user.role,
        tenant_id=admin_user.tenant_id,
        permissions=frozenset(resolve_permissions(admin_user.role)),
        user_name=admin_user.full_name,
    )


# ── Stock ────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def warehouse(db_session: AsyncSession, tenant_a: Tenant) -> Warehouse:
    wh = Warehouse(tenant_id=tenant_a.id, name="Port Botany DC", city="Sydney", state="NSW")
    db_session.add(wh)
    await db_session.commit()
    return wh


@pytest_asyncio.fixture
async def sku(db_session: AsyncSession, tenant_a: Tenant) -> SKU:
    item = SKU(
        tenant_id=tenant_a.id,
        sku_code="CTN-500",
        description="Carton 500ml x 12",
        hu_per_su=40,
        pick_strategy="FIFO",
        length_per_hu_mm=400,
        width_per_hu_mm=300,
        height_per_hu_mm=250,
        weight_per_hu_kg=7.5,
    )
    db_session.add(item)
    await db_session.commit()
    return item


@pytest.fixture
def make_lpns(db_session: AsyncSession, tenant_a: Tenant, warehouse: Warehouse, sku: SKU):
    """Put away LPNs of `sku`, oldest first, without an inbound job."""

    made = []

    async def _make(*quantities: int, batch_number: str | None = "B1", status: str = "available"):
        start = datetime(2026, 1, 1, 8, 0)
        lpns = []
        for qty in quantities:
            i = len(made)
            lpn = PutAwayStock(
                tenant_id=tenant_a.id,
                lpn_number=f"LPN{i + 1:08d}",
                sku_id=sku.id,
                batch_number=batch_number,
                warehouse_id=warehouse.id,
                location=f"A-0{i + 1}-01",
                hu_qty=qty,
                allocation_status=status,
                created_at=start + timedelta(minutes=i),
            )
            db_session.add(lpn)
            lpns.append(lpn)
            made.append(lpn)
        await db_session.commit()
        return lpns

    return _make


@pytest.fixture
def make_outbound(db_session: AsyncSession, tenant_a: Tenant, warehouse: Warehouse, sku: SKU):
    """Outbound job with one line per expected quantity."""

    async def _make(*expected: int, job_code: str = "OUT-TEST01"):
        job = OutboundInventory(
            tenant_id=tenant_a.id,
            job_code=job_code,
            status="draft",
            warehouse_id=warehouse.id,
        )
        db_session.add(job)
        await db_session.flush()
        lines = []
        for qty in expected:
            line = OutboundProductLine(
                tenant_id=tenant_a.id,
                outbound_inventory_id=job.id,
                sku_id=sku.id,
                expected_qty=qty,
                allocated_qty=0,
            )
            db_session.add(line)
            lines.append(line)
        await db_session.commit()
        return job, lines

    return _make


@pytest_asyncio.fixture
async def inbound_job(db_session: AsyncSession, tenant_a: Tenant, warehouse: Warehouse, sku: SKU):
    """Inbound job with one received line of 80 HU."""
    job = InboundInventory(
        tenant_id=tenant_a.id,
        job_code="IN-TEST01",
        warehouse_id=warehouse.id,
        delivery_customer_reference="PO-7781",
        customer_name="Coastal Foods",
    )
    db_session.add(job)
    await db_session.flush()
    line = InboundProductLine(
        tenant_id=tenant_a.id,
        inbound_inventory_id=job.id,
        sku_id=sku.id,
        batch_number="B1",
        expected_qty=80,
        received_qty=80,
    )
    db_session.add(line)
    await db_session.commit()
    return job, line


# ── Bookings ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def parties(db_session: AsyncSession, tenant_a: Tenant):
    """A consignee/consignor customer and a paying customer to charge."""
    customer = Customer(tenant_id=tenant_a.id, customer_name="Coastal Foods", city="Sydney")
    payer = PayingCustomer(
        tenant_id=tenant_a.id,
        customer_name="Blue Water Imports",
        contact_name="Dana Reyes",
        contact_phone="0299990000",
        billing_city="Sydney",
        billing_state="NSW",
    )
    db_session.add_all([customer, payer])
    await db_session.commit()
    return customer, payer


@pytest.fixture
def booking_body(parties):
    """Build a booking payload that passes confirmation."""
    customer, payer = parties

    def _body(**overrides) -> dict:
        body = {
            "customer_reference": "CR-7781",
            "booking_reference": "MSCU-2231",
            "charge_to": {"kind": "paying_customer", "id": payer.id},
            "consignee_id": customer.id,
            "consignor_id": customer.id,
            "vessel_name": "MSC Aurora",
            "voyage_number": "AU114",
            "from_name": "Port Botany",
            "to_name": "Port Botany DC",
            "container_sizes": ["20GP"],
            "container_quantities": {"20GP": 1},
            "full_routing": {"pickup": "Port Botany", "dropoff": "Port Botany DC"},
        }
        body.update(overrides)
        return body

    return _body


# ── Redis Fixtures ───────────────────────────────────────────────

@pytest_asyncio.fixture
async def redis_client(monkeypatch):
    """Redis client for cache tests; skips when no Redis server is reachable."""
    import redis.asyncio as redis

    from app.utils import cache

    client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await client.ping()
    except (redis.ConnectionError, OSError):
        await client.aclose()
        pytest.skip("Redis is not available")

    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(cache, "_redis_client", None)

    yield client

    # Cleanup: flush test database
    await client.flushdb()
    await client.aclose()
    await cache.close_redis()


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "cache: Tests that need Redis")
    config.addinivalue_line("markers", "slow: Slow tests")
