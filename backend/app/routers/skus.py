"""SKU master data routes.

Endpoints:
    GET    /api/skus          List SKUs (search, customer filter; cached)
    POST   /api/skus          Create SKU; stacking fields derived unless supplied
    GET    /api/skus/{id}     Single SKU
    PATCH  /api/skus/{id}     Update SKU; stacking re-derived where still calculated
    DELETE /api/skus/{id}     Delete SKU
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.middleware.exceptions import ConflictError
from app.models.tenant.sku import SKU, StorageUnit
from app.schemas.common import PaginatedResponse
from app.schemas.sku import SKUCreate, SKUOut, SKUUpdate
from app.services.sku_calculator import STACKING_FIELDS, apply_derived_fields
from app.tenancy import get_owned, scoped
from app.utils.cache import cached, invalidate_cache
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _ensure_unique_code(
    db: AsyncSession, tenant_id: str, sku_code: str, exclude_id: str | None = None
) -> None:
    stmt = select(SKU.id).where(SKU.tenant_id == tenant_id, SKU.sku_code == sku_code)
    if exclude_id:
        stmt = stmt.where(SKU.id != exclude_id)
    if await db.scalar(stmt.limit(1)):
        raise ConflictError(f"SKU code '{sku_code}' already exists", details={"sku_code": sku_code})


async def _storage_unit(db: AsyncSession, ctx: AuthContext, storage_unit_id: str | None):
    if not storage_unit_id:
        return None
    return await get_owned(db, StorageUnit, storage_unit_id, ctx, label="Storage unit")


@router.get("", response_model=PaginatedResponse[SKUOut])
@cached(ttl=300, prefix="skus")
async def list_skus(
    search: str | None = None,
    customer_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    stmt = scoped(select(SKU), SKU, ctx).order_by(SKU.sku_code)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(SKU.sku_code.ilike(pattern) | SKU.description.ilike(pattern))
    if customer_id:
        stmt = stmt.where(SKU.customer_id == customer_id)
    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[SKUOut.model_validate(s) for s in items], total=total, limit=limit, offset=offset
    )


@router.post("", response_model=SKUOut, status_code=201)
async def create_sku(
    body: SKUCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    tenant_id = ctx.require_tenant()
    await _ensure_unique_code(db, tenant_id, body.sku_code)
    storage_unit = await _storage_unit(db, ctx, body.storage_unit_id)

    data = body.model_dump(exclude_none=True)
    sku = SKU(
        tenant_id=tenant_id,
        cases_per_layer_calculated=True,
        layers_per_pallet_calculated=True,
        cases_per_pallet_calculated=True,
        **data,
    )
    apply_derived_fields(sku, storage_unit, overridden={f for f in STACKING_FIELDS if f in data})
    db.add(sku)
    await db.flush()
    await invalidate_cache("skus:*")
    logger.info("SKU %s created", sku.sku_code)
    return SKUOut.model_validate(sku)


@router.get("/{sku_id}", response_model=SKUOut)
async def get_sku(
    sku_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return SKUOut.model_validate(await get_owned(db, SKU, sku_id, ctx, label="SKU"))


@router.patch("/{sku_id}", response_model=SKUOut)
async def update_sku(
    sku_id: str,
    body: SKUUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    sku = await get_owned(db, SKU, sku_id, ctx, label="SKU", for_update=True)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("sku_code") and changes["sku_code"] != sku.sku_code:
        await _ensure_unique_code(db, sku.tenant_id, changes["sku_code"], exclude_id=sku.id)

    for key, value in changes.items():
        setattr(sku, key, value)

    # Clearing a stacking field hands it back to the calculator
    overridden = set()
    for field in STACKING_FIELDS:
        if field not in changes:
            continue
        if changes[field] is None:
            setattr(sku, f"{field}_calculated", True)
        else:
            overridden.add(field)

    apply_derived_fields(sku, await _storage_unit(db, ctx, sku.storage_unit_id), overridden=overridden)
    await db.flush()
    await invalidate_cache("skus:*")
    return SKUOut.model_validate(sku)


@router.delete("/{sku_id}", status_code=204)
async def delete_sku(
    sku_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    sku = await get_owned(db, SKU, sku_id, ctx, label="SKU")
    await db.delete(sku)
    await db.flush()
    await invalidate_cache("skus:*")
