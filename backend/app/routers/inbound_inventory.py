"""Inbound inventory (receiving job) routes.

Endpoints:
    GET    /api/inbound-inventory                          List jobs (paginated)
    POST   /api/inbound-inventory                          Create job with lines
    GET    /api/inbound-inventory/{id}                     Job with lines
    PATCH  /api/inbound-inventory/{id}                     Update job header
    DELETE /api/inbound-inventory/{id}                     Delete job (no LPNs yet)
    POST   /api/inbound-inventory/{id}/lines               Add a product line
    PATCH  /api/inbound-inventory/{id}/lines/{line_id}     Update a product line
    DELETE /api/inbound-inventory/{id}/lines/{line_id}     Remove a product line
    POST   /api/inbound-inventory/{id}/receive             Record received quantities
    POST   /api/inbound-inventory/{id}/put-away            Create LPNs for a line
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_permission
from app.database import get_db
from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.models.tenant.inbound import InboundInventory, InboundProductLine
from app.models.tenant.stock import PutAwayStock
from app.models.tenant.warehouse import Warehouse
from app.schemas.common import PaginatedResponse
from app.schemas.inbound import (
    InboundCreate,
    InboundLineIn,
    InboundLineOut,
    InboundOut,
    InboundUpdate,
    PutAwayRequest,
    ReceiveRequest,
)
from app.schemas.inventory import LpnOut
from app.services.denormalize import apply_party, parse_party_ref
from app.services.put_away import put_away_inbound, receive_inbound
from app.services.sku_calculator import enrich_inbound_line, load_sku
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity
from app.utils.numbering import generate_job_code
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

_CUSTOMER_FIELDS = {"name": "customer_name", "city": "customer_location", "state": "customer_state"}


# ── Helpers ──────────────────────────────────────────────────

async def _lines(db: AsyncSession, job_id: str) -> list[InboundProductLine]:
    result = await db.execute(
        select(InboundProductLine)
        .where(InboundProductLine.inbound_inventory_id == job_id)
        .order_by(InboundProductLine.created_at)
    )
    return list(result.scalars().all())


async def _job_out(db: AsyncSession, job: InboundInventory) -> InboundOut:
    out = InboundOut.model_validate(job)
    out.lines = [InboundLineOut.model_validate(line) for line in await _lines(db, job.id)]
    return out


async def _set_delivery_customer(
    db: AsyncSession, ctx: AuthContext, job: InboundInventory, value, contact_supplied: bool
) -> None:
    fields = dict(_CUSTOMER_FIELDS)
    if not contact_supplied:
        fields["contact"] = "customer_contact_name"
    await apply_party(db, ctx, job, "delivery_customer", parse_party_ref(value), fields)


async def _check_warehouse(db: AsyncSession, ctx: AuthContext, warehouse_id: str | None) -> None:
    if warehouse_id:
        await get_owned(db, Warehouse, warehouse_id, ctx)


async def _build_line(
    db: AsyncSession, tenant_id: str, job: InboundInventory, data: dict
) -> InboundProductLine:
    line = InboundProductLine(tenant_id=tenant_id, inbound_inventory_id=job.id, **data)
    sku, storage_unit = await load_sku(db, tenant_id, line.sku_id)
    if sku is not None:
        enrich_inbound_line(line, sku, storage_unit)
    return line


async def _get_line(
    db: AsyncSession, ctx: AuthContext, job: InboundInventory, line_id: str
) -> InboundProductLine:
    line = await get_owned(db, InboundProductLine, line_id, ctx, label="Inbound product line")
    if line.inbound_inventory_id != job.id:
        raise ValidationFailedError("Product line does not belong to this job")
    return line


async def _has_lpns(db: AsyncSession, column, value: str) -> bool:
    found = await db.scalar(
        select(PutAwayStock.id).where(column == value, PutAwayStock.is_deleted == False).limit(1)  # noqa: E712
    )
    return found is not None


# ── Jobs ─────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[InboundOut])
async def list_inbound(
    search: str | None = None,
    warehouse_id: str | None = None,
    completed: bool | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.read")),
):
    stmt = scoped(select(InboundInventory), InboundInventory, ctx).order_by(
        InboundInventory.created_at.desc()
    )
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            InboundInventory.job_code.ilike(pattern)
            | InboundInventory.customer_name.ilike(pattern)
            | InboundInventory.delivery_customer_reference.ilike(pattern)
        )
    if warehouse_id:
        stmt = stmt.where(InboundInventory.warehouse_id == warehouse_id)
    if completed is True:
        stmt = stmt.where(InboundInventory.completed_date.is_not(None))
    elif completed is False:
        stmt = stmt.where(InboundInventory.completed_date.is_(None))

    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[await _job_out(db, job) for job in items], total=total, limit=limit, offset=offset
    )


@router.post("", response_model=InboundOut, status_code=201)
async def create_inbound(
    body: InboundCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    tenant_id = ctx.require_tenant()
    await _check_warehouse(db, ctx, body.warehouse_id)

    job = InboundInventory(
        tenant_id=tenant_id,
        job_code=await generate_job_code(db, tenant_id, "inbound"),
        created_by=ctx.user_id,
        **body.model_dump(exclude={"lines", "delivery_customer"}),
    )
    await _set_delivery_customer(
        db, ctx, job, body.delivery_customer, contact_supplied=body.customer_contact_name is not None
    )
    db.add(job)
    await db.flush()

    for data in body.lines:
        db.add(await _build_line(db, tenant_id, job, data.model_dump()))
    await db.flush()

    await log_activity(
        db, ctx,
        action="created",
        entity_type="inbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        summary=f"Created inbound job {job.job_code} with {len(body.lines)} line(s)",
    )
    logger.info("Inbound job %s created", job.job_code)
    return await _job_out(db, job)


@router.get("/{job_id}", response_model=InboundOut)
async def get_inbound(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.read")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    return await _job_out(db, job)


@router.patch("/{job_id}", response_model=InboundOut)
async def update_inbound(
    job_id: str,
    body: InboundUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("warehouse_id"):
        await _check_warehouse(db, ctx, changes["warehouse_id"])

    party = changes.pop("delivery_customer", ...)
    for key, value in changes.items():
        setattr(job, key, value)
    if party is not ...:
        await _set_delivery_customer(
            db, ctx, job, party, contact_supplied="customer_contact_name" in changes
        )

    await db.flush()
    await log_activity(
        db, ctx,
        action="updated",
        entity_type="inbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        details={"fields": sorted(body.model_dump(exclude_unset=True))},
    )
    return await _job_out(db, job)


@router.delete("/{job_id}", status_code=204)
async def delete_inbound(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.delete")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    if await _has_lpns(db, PutAwayStock.inbound_inventory_id, job.id):
        raise ConflictError("Inbound job has put-away stock and cannot be deleted")

    for line in await _lines(db, job.id):
        await db.delete(line)
    await log_activity(
        db, ctx,
        action="deleted",
        entity_type="inbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
    )
    await db.delete(job)
    await db.flush()


# ── Lines ────────────────────────────────────────────────────

@router.post("/{job_id}/lines", response_model=InboundLineOut, status_code=201)
async def add_inbound_line(
    job_id: str,
    body: InboundLineIn,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    line = await _build_line(db, job.tenant_id, job, body.model_dump())
    db.add(line)
    await db.flush()
    return InboundLineOut.model_validate(line)


@router.patch("/{job_id}/lines/{line_id}", response_model=InboundLineOut)
async def update_inbound_line(
    job_id: str,
    line_id: str,
    body: InboundLineIn,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    line = await _get_line(db, ctx, job, line_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(line, key, value)

    sku, storage_unit = await load_sku(db, job.tenant_id, line.sku_id)
    if sku is not None:
        enrich_inbound_line(line, sku, storage_unit)
    await db.flush()
    return InboundLineOut.model_validate(line)


@router.delete("/{job_id}/lines/{line_id}", status_code=204)
async def delete_inbound_line(
    job_id: str,
    line_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    line = await _get_line(db, ctx, job, line_id)
    if await _has_lpns(db, PutAwayStock.inbound_product_line_id, line.id):
        raise ConflictError("Product line has put-away stock and cannot be removed")
    await db.delete(line)
    await db.flush()


# ── Receive & put-away ───────────────────────────────────────

@router.post("/{job_id}/receive", response_model=InboundOut)
async def receive(
    job_id: str,
    body: ReceiveRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("freight.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job", for_update=True)
    await receive_inbound(db, ctx, job, [r.model_dump() for r in body.lines])
    return await _job_out(db, job)


@router.post("/{job_id}/put-away", response_model=list[LpnOut], status_code=201)
async def put_away(
    job_id: str,
    body: PutAwayRequest,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("inventory.write")),
):
    job = await get_owned(db, InboundInventory, job_id, ctx, label="Inbound job")
    await _check_warehouse(db, ctx, body.warehouse_id)
    lpns = await put_away_inbound(
        db, ctx, job, body.product_line_id,
        [p.model_dump() for p in body.pallets],
        warehouse_id=body.warehouse_id,
    )
    return [LpnOut.model_validate(lpn) for lpn in lpns]
