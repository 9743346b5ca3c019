"""Outbound inventory (pick & dispatch job) routes.

Endpoints:
    GET    /api/outbound-inventory                              List jobs
    POST   /api/outbound-inventory                              Create job with lines
    GET    /api/outbound-inventory/{id}                         Job with lines
    PATCH  /api/outbound-inventory/{id}                         Update job header
    DELETE /api/outbound-inventory/{id}                         Delete job (nothing allocated)
    POST   /api/outbound-inventory/{id}/status                  Manual step (ready_to_pick, ...)
    POST   /api/outbound-inventory/{id}/lines                   Add a product line
    PATCH  /api/outbound-inventory/{id}/lines/{line_id}         Update a product line
    DELETE /api/outbound-inventory/{id}/lines/{line_id}         Remove a product line
    POST   /api/outbound-inventory/{id}/allocate                Allocate LPNs to lines
    POST   /api/outbound-inventory/{id}/release                 Release a line's LPNs
    GET    /api/outbound-inventory/{id}/pickups                 Pickups of the job
    POST   /api/outbound-inventory/{id}/pickups                 Create (and optionally complete) a pickup
    POST   /api/outbound-inventory/{id}/pickups/{pid}/complete  Complete a pickup
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_permission
from app.database import get_db
from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.models.tenant.outbound import OUTBOUND_STATUSES, OutboundInventory, OutboundProductLine
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.models.tenant.warehouse import Warehouse
from app.schemas.common import PaginatedResponse
from app.schemas.container import StatusChange
from app.schemas.outbound import (
    AllocateRequest,
    AllocateResponse,
    OutboundCreate,
    OutboundLineIn,
    OutboundLineOut,
    OutboundOut,
    OutboundUpdate,
    PickupCreate,
    PickupOut,
    ReleaseRequest,
    ReleaseResponse,
)
from app.services.allocation import allocate, release
from app.services.denormalize import CUSTOMER, PAYING_CUSTOMER, WAREHOUSE, apply_party, parse_party_ref
from app.services.claims import CLAIMED_STATUSES
from app.services.pickup import change_outbound_status, complete_pickup, create_pickup
from app.services.sku_calculator import enrich_outbound_line, load_sku
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity
from app.utils.numbering import generate_job_code
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

# party field → (allowed kinds, column prefix for the snapshot)
_PARTIES = {
    "customer": ((CUSTOMER, PAYING_CUSTOMER), "customer"),
    "customer_to": ((CUSTOMER, PAYING_CUSTOMER, WAREHOUSE), "customer_to"),
    "customer_from": ((CUSTOMER, PAYING_CUSTOMER), "customer_from"),
}


# ── Helpers ──────────────────────────────────────────────────

async def _lines(db: AsyncSession, job_id: str) -> list[OutboundProductLine]:
    result = await db.execute(
        select(OutboundProductLine)
        .where(OutboundProductLine.outbound_inventory_id == job_id)
        .order_by(OutboundProductLine.created_at)
    )
    return list(result.scalars().all())


async def _job_out(db: AsyncSession, job: OutboundInventory) -> OutboundOut:
    out = OutboundOut.model_validate(job)
    out.lines = [OutboundLineOut.model_validate(line) for line in await _lines(db, job.id)]
    return out


async def _set_party(db: AsyncSession, ctx: AuthContext, job: OutboundInventory, name: str, value) -> None:
    allowed, prefix = _PARTIES[name]
    await apply_party(db, ctx, job, name, parse_party_ref(value, allowed=allowed), {
        "name": f"{prefix}_name",
        "city": f"{prefix}_location",
        "state": f"{prefix}_state",
        "contact": f"{prefix}_contact",
    })


async def _build_line(
    db: AsyncSession, tenant_id: str, job: OutboundInventory, data: dict
) -> OutboundProductLine:
    line = OutboundProductLine(
        tenant_id=tenant_id, outbound_inventory_id=job.id, allocated_qty=0, **data
    )
    sku, _ = await load_sku(db, tenant_id, line.sku_id)
    if sku is not None:
        enrich_outbound_line(line, sku)
    return line


async def _get_line(
    db: AsyncSession, ctx: AuthContext, job: OutboundInventory, line_id: str
) -> OutboundProductLine:
    line = await get_owned(db, OutboundProductLine, line_id, ctx, label="Outbound product line")
    if line.outbound_inventory_id != job.id:
        raise ValidationFailedError("Product line does not belong to this job")
    return line


async def _has_claimed_lpns(db: AsyncSession, column, value: str) -> bool:
    found = await db.scalar(
        select(PutAwayStock.id).where(
            column == value,
            PutAwayStock.allocation_status.in_(CLAIMED_STATUSES),
            PutAwayStock.is_deleted == False,  # noqa: E712
        ).limit(1)
    )
    return found is not None


# ── Jobs ─────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[OutboundOut])
async def list_outbound(
    search: str | None = None,
    status: str | None = None,
    warehouse_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.read")),
):
    stmt = scoped(select(OutboundInventory), OutboundInventory, ctx).order_by(
        OutboundInventory.created_at.desc()
    )
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            OutboundInventory.job_code.ilike(pattern)
            | OutboundInventory.customer_name.ilike(pattern)
            | OutboundInventory.customer_ref_number.ilike(pattern)
        )
    if status:
        if status not in OUTBOUND_STATUSES:
            raise ValidationFailedError(f"Unknown status '{status}'")
        stmt = stmt.where(OutboundInventory.status == status)
    if warehouse_id:
        stmt = stmt.where(OutboundInventory.warehouse_id == warehouse_id)

    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[await _job_out(db, job) for job in items], total=total, limit=limit, offset=offset
    )


@router.post("", response_model=OutboundOut, status_code=201)
async def create_outbound(
    body: OutboundCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    tenant_id = ctx.require_tenant()
    if body.warehouse_id:
        await get_owned(db, Warehouse, body.warehouse_id, ctx)

    job = OutboundInventory(
        tenant_id=tenant_id,
        job_code=await generate_job_code(db, tenant_id, "outbound"),
        status="draft",
        created_by=ctx.user_id,
        **body.model_dump(exclude={"lines", *_PARTIES}),
    )
    for name in _PARTIES:
        await _set_party(db, ctx, job, name, getattr(body, name))
    db.add(job)
    await db.flush()

    for data in body.lines:
        db.add(await _build_line(db, tenant_id, job, data.model_dump()))
    await db.flush()

    await log_activity(
        db, ctx,
        action="created",
        entity_type="outbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        summary=f"Created outbound job {job.job_code} with {len(body.lines)} line(s)",
    )
    logger.info("Outbound job %s created", job.job_code)
    return await _job_out(db, job)


@router.get("/{job_id}", response_model=OutboundOut)
async def get_outbound(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.read")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    return await _job_out(db, job)


@router.patch("/{job_id}", response_model=OutboundOut)
async def update_outbound(
    job_id: str,
    body: OutboundUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("warehouse_id"):
        await get_owned(db, Warehouse, changes["warehouse_id"], ctx)

    for key, value in changes.items():
        if key in _PARTIES:
            await _set_party(db, ctx, job, key, value)
        else:
            setattr(job, key, value)
    await db.flush()
    await log_activity(
        db, ctx,
        action="updated",
        entity_type="outbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        details={"fields": sorted(changes)},
    )
    return await _job_out(db, job)


@router.delete("/{job_id}", status_code=204)
async def delete_outbound(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.delete")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    if await _has_claimed_lpns(db, PutAwayStock.outbound_inventory_id, job.id):
        raise ConflictError("Release the job's LPNs before deleting it")

    pickups = (await db.execute(
        select(PickupStock).where(PickupStock.outbound_inventory_id == job.id)
    )).scalars().all()
    for pickup in pickups:
        await db.delete(pickup)
    for line in await _lines(db, job.id):
        await db.delete(line)
    await log_activity(
        db, ctx,
        action="deleted",
        entity_type="outbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
    )
    await db.delete(job)
    await db.flush()


@router.post("/{job_id}/status", response_model=OutboundOut)
async def set_outbound_status(
    job_id: str,
    body: StatusChange,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    if body.status not in OUTBOUND_STATUSES:
        raise ValidationFailedError(f"Unknown status '{body.status}'")
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job", for_update=True)
    await change_outbound_status(db, ctx, job, body.status)
    return await _job_out(db, job)


# ── Lines ────────────────────────────────────────────────────

@router.post("/{job_id}/lines", response_model=OutboundLineOut, status_code=201)
async def add_outbound_line(
    job_id: str,
    body: OutboundLineIn,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    line = await _build_line(db, job.tenant_id, job, body.model_dump())
    db.add(line)
    await db.flush()
    return OutboundLineOut.model_validate(line)


@router.patch("/{job_id}/lines/{line_id}", response_model=OutboundLineOut)
async def update_outbound_line(
    job_id: str,
    line_id: str,
    body: OutboundLineIn,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    line = await _get_line(db, ctx, job, line_id)
    changes = body.model_dump(exclude_unset=True)
    if "sku_id" in changes and changes["sku_id"] != line.sku_id and (line.allocated_qty or 0) > 0:
        raise ConflictError("Cannot change the SKU of a line with allocated LPNs")

    for key, value in changes.items():
        setattr(line, key, value)
    sku, _ = await load_sku(db, job.tenant_id, line.sku_id)
    if sku is not None:
        enrich_outbound_line(line, sku)
    await db.flush()
    return OutboundLineOut.model_validate(line)


@router.delete("/{job_id}/lines/{line_id}", status_code=204)
async def delete_outbound_line(
    job_id: str,
    line_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    line = await _get_line(db, ctx, job, line_id)
    if await _has_claimed_lpns(db, PutAwayStock.outbound_product_line_id, line.id):
        raise ConflictError("Release the line's LPNs before removing it")
    await db.delete(line)
    await db.flush()


# ── Allocation ───────────────────────────────────────────────

@router.post("/{job_id}/allocate", response_model=AllocateResponse)
async def allocate_job(
    job_id: str,
    body: AllocateRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job", for_update=True)
    results = await allocate(db, ctx, job, [item.model_dump() for item in body.allocations])
    return AllocateResponse(status=job.status, results=results)


@router.post("/{job_id}/release", response_model=ReleaseResponse)
async def release_line(
    job_id: str,
    body: ReleaseRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job", for_update=True)
    released = await release(db, ctx, job, body.product_line_id, body.lpn_ids)
    return ReleaseResponse(status=job.status, released_lpns=released)


# ── Pickups ──────────────────────────────────────────────────

@router.get("/{job_id}/pickups", response_model=list[PickupOut])
async def list_pickups(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.read")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    result = await db.execute(
        scoped(select(PickupStock), PickupStock, ctx)
        .where(PickupStock.outbound_inventory_id == job.id)
        .order_by(PickupStock.created_at)
    )
    return [PickupOut.model_validate(p) for p in result.scalars().all()]


@router.post("/{job_id}/pickups", response_model=PickupOut, status_code=201)
async def create_job_pickup(
    job_id: str,
    body: PickupCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    line = await _get_line(db, ctx, job, body.product_line_id)
    pickup = await create_pickup(
        db, ctx,
        lpn_ids=body.lpn_ids,
        outbound_product_line=line,
        loosened_qty=body.loosened_qty,
        buffer_qty=body.buffer_qty,
        notes=body.notes,
    )
    if body.complete:
        await complete_pickup(db, ctx, pickup)
    return PickupOut.model_validate(pickup)


@router.post("/{job_id}/pickups/{pickup_id}/complete", response_model=PickupOut)
async def complete_job_pickup(
    job_id: str,
    pickup_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    job = await get_owned(db, OutboundInventory, job_id, ctx, label="Outbound job")
    pickup = await get_owned(db, PickupStock, pickup_id, ctx, label="Pickup", for_update=True)
    if pickup.outbound_inventory_id != job.id:
        raise ValidationFailedError("Pickup does not belong to this job")
    await complete_pickup(db, ctx, pickup)
    return PickupOut.model_validate(pickup)
