"""Tenant registration and platform approval.

Endpoints:
    POST   /api/tenants                    Register a company (public)
    GET    /api/tenants/check-subdomain    Subdomain availability (public)
    GET    /api/tenants                    List tenants (superadmin)
    POST   /api/tenants/{id}/approve       Approve: assign subdomain, seed roles (superadmin)
    DELETE /api/tenants/{id}               Deactivate a tenant (superadmin)
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_superadmin
from app.auth.permissions import SYSTEM_ROLES
from app.database import get_db
from app.middleware.exceptions import (
    BusinessLogicError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from app.models.public.tenant import Tenant
from app.models.tenant.tenant_role import TenantRole
from app.schemas.common import PaginatedResponse
from app.schemas.tenant import SubdomainCheck, TenantApproval, TenantOut, TenantRegister
from app.tenancy import normalize_subdomain, reserved_subdomains, slugify, validate_subdomain
from app.utils.activity import log_activity
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_SUBDOMAIN_SUFFIX = 999


# ── Helpers ──────────────────────────────────────────────────

async def _subdomain_taken(db: AsyncSession, subdomain: str) -> bool:
    found = await db.scalar(select(Tenant.id).where(Tenant.subdomain == subdomain).limit(1))
    return found is not None


def _subdomain_base(company_name: str) -> str:
    base = slugify(company_name)[:59].strip("-") or "tenant"
    if len(base) < 3:
        base = f"{base}-co"
    return base


async def generate_subdomain(db: AsyncSession, company_name: str) -> str:
    """`slug`, then `slug-1` … `slug-999`; a timestamp suffix after that."""
    base = _subdomain_base(company_name)
    candidates = [base] + [f"{base}-{n}" for n in range(1, MAX_SUBDOMAIN_SUFFIX + 1)]
    for candidate in candidates:
        if validate_subdomain(candidate) is None and not await _subdomain_taken(db, candidate):
            return candidate
    fallback = f"{base}-{int(time.time())}"
    logger.warning("Subdomain suffixes exhausted for %r, using %s", company_name, fallback)
    return fallback


async def seed_system_roles(db: AsyncSession, tenant_id: str) -> list[str]:
    existing = set((await db.execute(
        select(TenantRole.name).where(TenantRole.tenant_id == tenant_id)
    )).scalars().all())
    created = []
    for name, permissions in SYSTEM_ROLES.items():
        if name in existing:
            continue
        db.add(TenantRole(
            tenant_id=tenant_id,
            name=name,
            description=f"System {name.lower()} role",
            is_system_role=True,
            permissions=dict(permissions),
            is_active=True,
        ))
        created.append(name)
    await db.flush()
    return created


# ── Public ───────────────────────────────────────────────────

@router.post("", response_model=TenantOut, status_code=201)
async def register_tenant(
    body: TenantRegister,
    db: AsyncSession = Depends(get_db),
):
    """Register a company. The tenant stays unapproved until a superadmin approves it."""
    if not body.company_name or not body.email:
        raise ValidationFailedError("Company name and email are required")

    tenant = Tenant(
        **body.model_dump(exclude_unset=True),
        approved=False,
        onboarding_step="submitted",
        terms_accepted_at=datetime.utcnow() if body.privacy_consent else None,
    )
    db.add(tenant)
    await db.flush()
    logger.info("Tenant registered: %s (%s)", tenant.company_name, tenant.id)
    return TenantOut.model_validate(tenant)


@router.get("/check-subdomain", response_model=SubdomainCheck)
async def check_subdomain(
    subdomain: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not subdomain:
        raise ValidationFailedError("Subdomain parameter is required")

    normalized = normalize_subdomain(subdomain)
    error = validate_subdomain(normalized)
    if error:
        return SubdomainCheck(available=False, subdomain=normalized, message=error)
    if await _subdomain_taken(db, normalized):
        return SubdomainCheck(
            available=False, subdomain=normalized, message="This subdomain is already taken"
        )
    return SubdomainCheck(available=True, subdomain=normalized, message="Subdomain is available")


# ── Superadmin ───────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[TenantOut])
async def list_tenants(
    approved: bool | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _ctx: AuthContext = Depends(require_superadmin),
):
    stmt = select(Tenant).where(Tenant.deleted_at.is_(None)).order_by(Tenant.created_at.desc())
    if approved is not None:
        stmt = stmt.where(Tenant.approved == approved)
    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[TenantOut.model_validate(t) for t in items], total=total, limit=limit, offset=offset
    )


@router.post("/{tenant_id}/approve", response_model=TenantApproval)
async def approve_tenant(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_superadmin),
):
    tenant = await db.get(Tenant, tenant_id)
    if tenant is None or tenant.deleted_at is not None:
        raise ResourceNotFoundError("Tenant", tenant_id)
    if tenant.approved:
        raise BusinessLogicError("Tenant is already approved", error_code="ALREADY_APPROVED")

    if not tenant.subdomain or tenant.subdomain in reserved_subdomains():
        tenant.subdomain = await generate_subdomain(db, tenant.company_name)
    tenant.approved = True
    tenant.approved_by = ctx.user_id
    tenant.onboarding_step = "approved"
    await db.flush()

    roles = await seed_system_roles(db, tenant.id)
    await log_activity(
        db, ctx,
        action="approved",
        entity_type="tenant",
        entity_id=tenant.id,
        entity_code=tenant.subdomain,
        summary=f"Approved {tenant.company_name} as {tenant.subdomain}",
        tenant_id=tenant.id,
    )
    logger.info("Tenant %s approved with subdomain %s", tenant.id, tenant.subdomain)
    return TenantApproval(tenant=TenantOut.model_validate(tenant), roles_created=roles)


@router.delete("/{tenant_id}", response_model=TenantOut)
async def deactivate_tenant(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_superadmin),
):
    tenant = await db.get(Tenant, tenant_id)
    if tenant is None or tenant.deleted_at is not None:
        raise ResourceNotFoundError("Tenant", tenant_id)
    tenant.deleted_at = datetime.utcnow()
    await log_activity(
        db, ctx,
        action="deleted",
        entity_type="tenant",
        entity_id=tenant.id,
        entity_code=tenant.subdomain,
        summary=f"Deactivated {tenant.company_name}",
        tenant_id=tenant.id,
    )
    await db.flush()
    return TenantOut.model_validate(tenant)
