"""Warehouse inventory routes: aggregated stock and LPN records.

Endpoints:
    GET    /api/inventory                    Stock aggregated by SKU and batch
    GET    /api/inventory/records            LPN records (paginated, filtered)
    POST   /api/inventory/records/batch      Look up many LPNs by id
    PUT    /api/inventory/records/batch      Update many LPNs, row by row
    GET    /api/inventory/records/{id}       Single LPN
    PUT    /api/inventory/records/{id}       Update an LPN (status workflow)
    DELETE /api/inventory/records/{id}       Soft delete; a second call purges
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_permission
from app.config import settings
from app.database import get_db
from app.middleware.exceptions import ValidationFailedError
from app.models.tenant.stock import LPN_STATUSES, PutAwayStock
from app.schemas.common import DeleteResult, PaginatedResponse
from app.schemas.inventory import (
    AggregatedInventoryOut,
    InventoryResponse,
    LpnBatchGet,
    LpnBatchResult,
    LpnBatchUpdate,
    LpnOut,
    LpnRef,
    LpnUpdate,
)
from app.services.inventory import (
    aggregate_inventory_records,
    format_location_range,
    load_inventory_rows,
)
from app.services.lpn import delete_lpn, get_lpn, get_lpns_batch, update_lpn, update_lpns_batch
from app.tenancy import scoped
from app.utils.pagination import paginate

router = APIRouter()


def _check_batch_size(size: int, what: str) -> None:
    if size == 0:
        raise ValidationFailedError(f"{what} must not be empty")
    if size > settings.batch_max_items:
        raise ValidationFailedError(
            f"Too many {what.lower()} (max {settings.batch_max_items})",
            details={"max": settings.batch_max_items, "received": size},
        )


# ── Aggregated stock ─────────────────────────────────────────

@router.get("", response_model=InventoryResponse)
async def get_inventory(
    sku_id: str | None = None,
    warehouse_id: str | None = None,
    batch_number: str | None = None,
    location_from: str | None = None,
    location_to: str | None = None,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.read")),
):
    rows = await load_inventory_rows(
        db, ctx,
        sku_id=sku_id,
        warehouse_id=warehouse_id,
        batch_number=batch_number,
        location_from=location_from,
        location_to=location_to,
    )
    return InventoryResponse(
        items=[AggregatedInventoryOut.model_validate(a) for a in aggregate_inventory_records(rows)],
        location_range=format_location_range(location_from, location_to),
    )


# ── LPN records ──────────────────────────────────────────────

@router.get("/records", response_model=PaginatedResponse[LpnOut])
async def list_records(
    sku_id: str | None = None,
    warehouse_id: str | None = None,
    status: str | None = None,
    location: str | None = None,
    batch_number: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.read")),
):
    stmt = scoped(select(PutAwayStock), PutAwayStock, ctx).order_by(PutAwayStock.created_at)
    if sku_id:
        stmt = stmt.where(PutAwayStock.sku_id == sku_id)
    if warehouse_id:
        stmt = stmt.where(PutAwayStock.warehouse_id == warehouse_id)
    if status:
        if status not in LPN_STATUSES:
            raise ValidationFailedError(f"Unknown allocation status '{status}'")
        stmt = stmt.where(PutAwayStock.allocation_status == status)
    if location:
        stmt = stmt.where(PutAwayStock.location.ilike(f"{location}%"))
    if batch_number:
        stmt = stmt.where(PutAwayStock.batch_number == batch_number)

    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[LpnOut.model_validate(lpn) for lpn in items], total=total, limit=limit, offset=offset
    )


# Batch routes are declared before /records/{record_id} so "batch" is not read as an id

@router.post("/records/batch", response_model=list[LpnRef])
async def get_records_batch(
    body: LpnBatchGet,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.read")),
):
    _check_batch_size(len(body.ids), "IDs")
    return await get_lpns_batch(db, ctx, body.ids)


@router.put("/records/batch", response_model=list[LpnBatchResult])
async def update_records_batch(
    body: LpnBatchUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    _check_batch_size(len(body.updates), "Updates")
    return await update_lpns_batch(
        db, ctx, [item.model_dump(exclude_unset=True) for item in body.updates]
    )


@router.get("/records/{record_id}", response_model=LpnOut)
async def get_record(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.read")),
):
    return LpnOut.model_validate(await get_lpn(db, ctx, record_id))


@router.put("/records/{record_id}", response_model=LpnOut)
async def update_record(
    record_id: str,
    body: LpnUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    lpn = await update_lpn(db, ctx, record_id, body.model_dump(exclude_unset=True))
    return LpnOut.model_validate(lpn)


@router.delete("/records/{record_id}", response_model=DeleteResult)
async def delete_record(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.delete")),
):
    return DeleteResult(id=record_id, result=await delete_lpn(db, ctx, record_id))
