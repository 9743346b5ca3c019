"""LPN (pallet) records: allocation guard, status workflow, deletes, batches.

Workflow for allocation_status (manual edits):

    available ──► allocated ──► picked
        ▲            │  ▲         │
        └────────────┘  └─────────┤
        ▲                         │
        └─────────────────────────┘

An LPN belongs to at most one outbound job or export allocation at a time
(see app.services.claims). The guard is a read-then-write check on the row
loaded FOR UPDATE; there is no version column, so two transactions on a
backend that ignores row locks can still race.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import (
    ContainaException,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from app.models.tenant.container import ContainerStockAllocation
from app.models.tenant.inbound import InboundProductLine
from app.models.tenant.outbound import OutboundInventory, OutboundProductLine
from app.models.tenant.sku import SKU
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.services.claims import (
    CLAIMED_STATUSES,
    assert_can_allocate,
    release_claim,
    sync_allocation_lines,
)
from app.services.pickup import lpn_entry, lpn_in_completed_pickup, recalculate_pickup, remove_lpn_from_pickups
from app.services.sku_calculator import ratio
from app.services.status_aggregator import refresh_container
from app.services.status_rules import outbound_allocation_status
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity

logger = logging.getLogger("containa.lpn")

EDITABLE_STATUSES = ("available", "allocated", "picked")

TRANSITIONS = {
    "available": {"allocated"},
    "allocated": {"picked", "available"},
    "picked": {"available", "allocated"},
}

_TRANSITION_ERRORS = {
    "available": "Available LPNs can only be updated to allocated",
    "allocated": "Allocated LPNs can only be updated to picked or available",
    "picked": "Picked LPNs can only be updated to available or allocated",
}

UPDATABLE_FIELDS = (
    "allocation_status",
    "outbound_inventory_id",
    "outbound_product_line_id",
    "location",
    "hu_qty",
    "batch_number",
)


# ── Outbound line bookkeeping ───────────────────────────────

async def sync_outbound_line(db: AsyncSession, line: OutboundProductLine) -> None:
    """Recompute a line's allocated quantity from the LPNs claiming it."""
    await db.flush()
    allocated = await db.scalar(
        select(func.coalesce(func.sum(PutAwayStock.hu_qty), 0)).where(
            PutAwayStock.outbound_product_line_id == line.id,
            PutAwayStock.allocation_status.in_(CLAIMED_STATUSES),
            PutAwayStock.is_deleted == False,  # noqa: E712
        )
    )
    line.allocated_qty = int(allocated or 0)
    hu_per_su = None
    if line.sku_id:
        hu_per_su = await db.scalar(select(SKU.hu_per_su).where(SKU.id == line.sku_id))
    line.plt_qty = ratio(line.allocated_qty, hu_per_su)


async def refresh_outbound_job(
    db: AsyncSession, job_id: str, *, reset_when_empty: bool = False
) -> str | None:
    """Re-derive the job's allocation status from its lines."""
    job = await db.get(OutboundInventory, job_id)
    if job is None:
        logger.warning("Outbound job %s not found during status refresh", job_id)
        return None
    lines = (await db.execute(
        select(OutboundProductLine).where(OutboundProductLine.outbound_inventory_id == job_id)
    )).scalars().all()
    new_status = outbound_allocation_status(lines, job.status)
    if reset_when_empty and job.status in ("partially_allocated", "allocated") and not any(
        (line.allocated_qty or 0) > 0 for line in lines
    ):
        new_status = "draft"
    if new_status != job.status:
        logger.info("Outbound job %s status %s -> %s", job.job_code, job.status, new_status)
        job.status = new_status
    return job.status


async def _resync(
    db: AsyncSession,
    line_ids: set[str | None],
    allocation_ids: set[str | None] | None = None,
) -> None:
    job_ids: set[str] = set()
    for line_id in filter(None, line_ids):
        line = await db.get(OutboundProductLine, line_id)
        if line is None:
            continue
        await sync_outbound_line(db, line)
        job_ids.add(line.outbound_inventory_id)
    for job_id in job_ids:
        await refresh_outbound_job(db, job_id, reset_when_empty=True)

    for allocation_id in filter(None, allocation_ids or ()):
        allocation = await db.get(ContainerStockAllocation, allocation_id)
        if allocation is None:
            continue
        await sync_allocation_lines(db, allocation)
        await db.flush()
        await refresh_container(db, allocation.container_detail_id)


# ── Single record ───────────────────────────────────────────

async def get_lpn(
    db: AsyncSession, ctx: AuthContext, lpn_id: str, *, for_update: bool = False
) -> PutAwayStock:
    """Live LPN of the caller's tenant; soft-deleted rows are 404."""
    return await get_owned(db, PutAwayStock, lpn_id, ctx, label="Record", for_update=for_update)


async def _target_line(
    db: AsyncSession, lpn: PutAwayStock, changes: dict
) -> OutboundProductLine:
    line_id = changes.get("outbound_product_line_id")
    if not line_id:
        raise ValidationFailedError(
            "Outbound product line is required when changing status to allocated"
        )
    line = await db.get(OutboundProductLine, line_id)
    if line is None:
        raise ResourceNotFoundError("Outbound product line", line_id)
    if line.tenant_id != lpn.tenant_id:
        raise PermissionDeniedError("Outbound product line does not belong to this tenant")
    job_id = changes.get("outbound_inventory_id")
    if job_id is not None and job_id != line.outbound_inventory_id:
        raise ValidationFailedError("Outbound job does not match the selected product line")
    return line


async def _clone_line_with_batch(
    db: AsyncSession, line: InboundProductLine, batch_number: str | None
) -> InboundProductLine:
    clone = InboundProductLine(
        tenant_id=line.tenant_id,
        inbound_inventory_id=line.inbound_inventory_id,
        sku_id=line.sku_id,
        sku_description=line.sku_description,
        batch_number=batch_number,
        lpn_qty=line.lpn_qty,
        expected_qty=line.expected_qty,
        received_qty=line.received_qty,
        expected_weight=line.expected_weight,
        received_weight=line.received_weight,
        sqm_per_su=line.sqm_per_su,
        pallet_spaces=line.pallet_spaces,
        weight_per_hu=line.weight_per_hu,
        expected_cubic_per_hu=line.expected_cubic_per_hu,
        received_cubic_per_hu=line.received_cubic_per_hu,
        expiry_date=line.expiry_date,
        attribute1=line.attribute1,
        attribute2=line.attribute2,
    )
    db.add(clone)
    await db.flush()
    return clone


async def update_lpn(
    db: AsyncSession, ctx: AuthContext, lpn_id: str, changes: dict
) -> PutAwayStock:
    """Apply a manual edit to one LPN.

    Every check runs before the first mutation, so a rejected edit leaves
    the record and its pickups untouched.
    """
    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if not changes:
        raise ValidationFailedError("No valid fields to update")

    lpn = await get_lpn(db, ctx, lpn_id, for_update=True)
    current = lpn.allocation_status or "available"
    new_status = changes.get("allocation_status")
    status_changed = new_status is not None and new_status != current

    # ── Validate ─────────────────────────────────────────────
    if new_status is not None:
        if new_status not in EDITABLE_STATUSES:
            raise ValidationFailedError("Invalid allocation status")
        if status_changed and new_status not in TRANSITIONS.get(current, set()):
            raise ValidationFailedError(
                _TRANSITION_ERRORS.get(current, f"LPNs with status {current} cannot be edited")
            )

    wants_refs = "outbound_product_line_id" in changes or "outbound_inventory_id" in changes
    resulting_status = new_status if status_changed else current
    target_line: OutboundProductLine | None = None
    if status_changed and current == "available" and new_status == "allocated":
        target_line = await _target_line(db, lpn, changes)
        await assert_can_allocate(db, lpn, target_line.outbound_inventory_id)
    elif wants_refs:
        if resulting_status != "allocated":
            raise ValidationFailedError(
                "Outbound references can only be set on allocated LPNs"
            )
        target_line = await _target_line(db, lpn, changes)
        await assert_can_allocate(db, lpn, target_line.outbound_inventory_id)

    if status_changed and current == "allocated" and new_status == "picked":
        if not lpn.outbound_product_line_id or not lpn.outbound_inventory_id:
            raise ValidationFailedError(
                "LPN must be allocated to an outbound product line before picking"
            )

    source_line: InboundProductLine | None = None
    if "batch_number" in changes and lpn.inbound_product_line_id:
        source_line = await db.get(InboundProductLine, lpn.inbound_product_line_id)

    # ── Apply ────────────────────────────────────────────────
    affected_lines = {lpn.outbound_product_line_id}
    affected_allocations = {lpn.export_allocation_id}
    old_status = current

    if "location" in changes:
        lpn.location = changes["location"]
    if "hu_qty" in changes and changes["hu_qty"] is not None:
        lpn.hu_qty = int(changes["hu_qty"])

    if target_line is not None:
        lpn.outbound_inventory_id = target_line.outbound_inventory_id
        lpn.outbound_product_line_id = target_line.id
        if status_changed:
            lpn.allocated_at = datetime.utcnow()
            lpn.allocated_by = ctx.user_id
        affected_lines.add(target_line.id)

    if status_changed:
        if current == "allocated" and new_status == "picked":
            if not await lpn_in_completed_pickup(db, lpn.outbound_product_line_id, lpn.id):
                pickup = PickupStock(
                    tenant_id=lpn.tenant_id,
                    outbound_inventory_id=lpn.outbound_inventory_id,
                    outbound_product_line_id=lpn.outbound_product_line_id,
                    picked_up_lpns=[lpn_entry(lpn)],
                    pickup_status="completed",
                    picked_up_by=ctx.user_id,
                    notes="",
                )
                recalculate_pickup(pickup)
                db.add(pickup)
        elif new_status == "available":
            release_claim(lpn)
            if current == "picked":
                await remove_lpn_from_pickups(db, lpn.tenant_id, lpn.id)
        elif current == "picked" and new_status == "allocated":
            await remove_lpn_from_pickups(db, lpn.tenant_id, lpn.id)
        lpn.allocation_status = new_status

    if "batch_number" in changes:
        new_batch = changes["batch_number"]
        if source_line is not None and source_line.batch_number != new_batch:
            clone = await _clone_line_with_batch(db, source_line, new_batch)
            lpn.inbound_product_line_id = clone.id
        lpn.batch_number = new_batch

    await _resync(db, affected_lines, affected_allocations)

    if status_changed:
        await log_activity(
            db, ctx,
            action="status_changed",
            entity_type="lpn",
            entity_id=lpn.id,
            entity_code=lpn.lpn_number,
            summary=f"LPN {lpn.lpn_number} {old_status} -> {new_status}",
        )
    await db.flush()
    return lpn


async def delete_lpn(db: AsyncSession, ctx: AuthContext, lpn_id: str) -> str:
    """Soft-delete a live LPN; purge one that is already soft-deleted.

    Returns "deleted" or "purged".
    """
    stmt = select(PutAwayStock).where(PutAwayStock.id == lpn_id)
    if ctx.tenant_id or not ctx.is_superadmin:
        stmt = stmt.where(PutAwayStock.tenant_id == ctx.tenant_id)
    lpn = (await db.execute(stmt.with_for_update())).scalar_one_or_none()
    if lpn is None:
        raise ResourceNotFoundError("Record", lpn_id)

    if lpn.is_deleted:
        await db.delete(lpn)
        await log_activity(
            db, ctx, action="purged", entity_type="lpn",
            entity_id=lpn_id, entity_code=lpn.lpn_number,
            summary=f"Permanently deleted LPN {lpn.lpn_number}",
        )
        await db.flush()
        return "purged"

    line_id = lpn.outbound_product_line_id
    lpn.is_deleted = True
    lpn.deleted_at = datetime.utcnow()
    lpn.deleted_by = ctx.user_id
    await _resync(db, {line_id}, {lpn.export_allocation_id})
    await log_activity(
        db, ctx, action="deleted", entity_type="lpn",
        entity_id=lpn.id, entity_code=lpn.lpn_number,
        summary=f"Deleted LPN {lpn.lpn_number}",
    )
    await db.flush()
    return "deleted"


# ── Batches ─────────────────────────────────────────────────

async def get_lpns_batch(db: AsyncSession, ctx: AuthContext, ids: list[str]) -> list[dict]:
    if not ids:
        return []
    result = await db.execute(
        scoped(
            select(PutAwayStock.id, PutAwayStock.sku_id, PutAwayStock.warehouse_id)
            .where(PutAwayStock.id.in_(ids)),
            PutAwayStock,
            ctx,
        )
    )
    return [
        {"id": row.id, "sku_id": row.sku_id, "warehouse_id": row.warehouse_id}
        for row in result.all()
    ]


async def update_lpns_batch(
    db: AsyncSession, ctx: AuthContext, updates: list[dict]
) -> list[dict]:
    """Apply edits one row at a time with single-record semantics.

    A failing row is reported and skipped; rows already applied stay applied.
    """
    results: list[dict] = []
    for update in updates:
        update = dict(update)
        lpn_id = update.pop("id")
        try:
            await update_lpn(db, ctx, lpn_id, update)
        except ContainaException as e:
            logger.info("Batch update of LPN %s rejected: %s", lpn_id, e.message)
            results.append({"id": lpn_id, "success": False, "error": e.message})
        else:
            results.append({"id": lpn_id, "success": True, "error": None})
    return results
