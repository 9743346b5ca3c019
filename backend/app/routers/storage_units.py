"""Storage unit (pallet footprint) routes.

Endpoints:
    GET    /api/storage-units          List (cached)
    POST   /api/storage-units          Create
    GET    /api/storage-units/{id}     Single storage unit
    PATCH  /api/storage-units/{id}     Update; re-derives stacking on linked SKUs
    DELETE /api/storage-units/{id}     Delete (refused while SKUs reference it)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.middleware.exceptions import ConflictError
from app.models.tenant.sku import SKU, StorageUnit
from app.schemas.sku import StorageUnitCreate, StorageUnitOut, StorageUnitUpdate
from app.services.sku_calculator import apply_derived_fields
from app.tenancy import get_owned, scoped
from app.utils.cache import cached, invalidate_cache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[StorageUnitOut])
@cached(ttl=300, prefix="storage_units")
async def list_storage_units(
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    result = await db.execute(
        scoped(select(StorageUnit), StorageUnit, ctx).order_by(StorageUnit.name)
    )
    return [StorageUnitOut.model_validate(su) for su in result.scalars().all()]


@router.post("", response_model=StorageUnitOut, status_code=201)
async def create_storage_unit(
    body: StorageUnitCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    storage_unit = StorageUnit(tenant_id=ctx.require_tenant(), **body.model_dump())
    db.add(storage_unit)
    await db.flush()
    await invalidate_cache("storage_units:*")
    return StorageUnitOut.model_validate(storage_unit)


@router.get("/{storage_unit_id}", response_model=StorageUnitOut)
async def get_storage_unit(
    storage_unit_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    storage_unit = await get_owned(db, StorageUnit, storage_unit_id, ctx, label="Storage unit")
    return StorageUnitOut.model_validate(storage_unit)


@router.patch("/{storage_unit_id}", response_model=StorageUnitOut)
async def update_storage_unit(
    storage_unit_id: str,
    body: StorageUnitUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    storage_unit = await get_owned(db, StorageUnit, storage_unit_id, ctx, label="Storage unit")
    changes = body.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(storage_unit, key, value)

    if {"length_per_su_mm", "width_per_su_mm"} & changes.keys():
        skus = (await db.execute(
            scoped(select(SKU), SKU, ctx).where(SKU.storage_unit_id == storage_unit.id)
        )).scalars().all()
        for sku in skus:
            apply_derived_fields(sku, storage_unit)
        if skus:
            logger.info("Re-derived stacking for %d SKU(s) on %s", len(skus), storage_unit.name)
        await invalidate_cache("skus:*")

    await db.flush()
    await invalidate_cache("storage_units:*")
    return StorageUnitOut.model_validate(storage_unit)


@router.delete("/{storage_unit_id}", status_code=204)
async def delete_storage_unit(
    storage_unit_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    storage_unit = await get_owned(db, StorageUnit, storage_unit_id, ctx, label="Storage unit")
    in_use = await db.scalar(
        select(SKU.id).where(SKU.storage_unit_id == storage_unit.id).limit(1)
    )
    if in_use:
        raise ConflictError("Storage unit is used by one or more SKUs")
    await db.delete(storage_unit)
    await db.flush()
    await invalidate_cache("storage_units:*")
