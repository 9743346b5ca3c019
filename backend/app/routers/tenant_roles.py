"""Tenant role management.

Endpoints:
    GET    /api/tenant-roles          List roles of the caller's tenant
    POST   /api/tenant-roles          Create a custom role
    GET    /api/tenant-roles/{id}     Single role
    PATCH  /api/tenant-roles/{id}     Update a role (system roles: permissions only)
    DELETE /api/tenant-roles/{id}     Delete a custom role that no user holds
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_permission
from app.auth.permissions import ALL_PERMISSIONS
from app.database import get_db
from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.models.public.user import User
from app.models.tenant.tenant_role import TenantRole
from app.schemas.tenant_role import TenantRoleCreate, TenantRoleOut, TenantRoleUpdate
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity

router = APIRouter()


def _check_permissions(permissions: dict[str, bool] | None) -> None:
    unknown = sorted(set(permissions or {}) - ALL_PERMISSIONS)
    if unknown:
        raise ValidationFailedError(
            f"Unknown permissions: {', '.join(unknown)}", details={"permissions": unknown}
        )


async def _ensure_unique_name(
    db: AsyncSession, tenant_id: str, name: str, exclude_id: str | None = None
) -> None:
    stmt = select(TenantRole.id).where(
        TenantRole.tenant_id == tenant_id, func.lower(TenantRole.name) == name.lower()
    )
    if exclude_id:
        stmt = stmt.where(TenantRole.id != exclude_id)
    if await db.scalar(stmt.limit(1)):
        raise ConflictError(f"A role named '{name}' already exists")


@router.get("", response_model=list[TenantRoleOut])
async def list_roles(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.roles")),
):
    result = await db.execute(
        scoped(select(TenantRole), TenantRole, ctx)
        .order_by(TenantRole.is_system_role.desc(), TenantRole.name)
    )
    return [TenantRoleOut.model_validate(r) for r in result.scalars().all()]


@router.post("", response_model=TenantRoleOut, status_code=201)
async def create_role(
    body: TenantRoleCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.roles")),
):
    tenant_id = ctx.require_tenant()
    _check_permissions(body.permissions)
    await _ensure_unique_name(db, tenant_id, body.name)

    role = TenantRole(tenant_id=tenant_id, is_system_role=False, **body.model_dump())
    db.add(role)
    await db.flush()
    await log_activity(
        db, ctx,
        action="created",
        entity_type="role",
        entity_id=role.id,
        entity_code=role.name,
        summary=f"Created role {role.name}",
    )
    return TenantRoleOut.model_validate(role)


@router.get("/{role_id}", response_model=TenantRoleOut)
async def get_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.roles")),
):
    return TenantRoleOut.model_validate(await get_owned(db, TenantRole, role_id, ctx, label="Role"))


@router.patch("/{role_id}", response_model=TenantRoleOut)
async def update_role(
    role_id: str,
    body: TenantRoleUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.roles")),
):
    role = await get_owned(db, TenantRole, role_id, ctx, label="Role")
    changes = body.model_dump(exclude_unset=True)
    if role.is_system_role and {"name", "is_active"} & changes.keys():
        raise ConflictError("System roles cannot be renamed or deactivated")
    if "permissions" in changes:
        _check_permissions(changes["permissions"])
    if changes.get("name"):
        await _ensure_unique_name(db, role.tenant_id, changes["name"], exclude_id=role.id)

    for key, value in changes.items():
        setattr(role, key, value)
    await db.flush()
    await log_activity(
        db, ctx,
        action="updated",
        entity_type="role",
        entity_id=role.id,
        entity_code=role.name,
        summary=f"Updated role {role.name}",
        details={"fields": sorted(changes)},
    )
    return TenantRoleOut.model_validate(role)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.roles")),
):
    role = await get_owned(db, TenantRole, role_id, ctx, label="Role")
    if role.is_system_role:
        raise ConflictError("System roles cannot be deleted")
    holders = await db.scalar(
        select(func.count(User.id)).where(User.tenant_role_id == role.id)
    )
    if holders:
        raise ConflictError(
            f"Role is assigned to {holders} user(s)", details={"users": holders}
        )
    await log_activity(
        db, ctx,
        action="deleted",
        entity_type="role",
        entity_id=role.id,
        entity_code=role.name,
        summary=f"Deleted role {role.name}",
    )
    await db.delete(role)
    await db.flush()
