"""Pickups: picking LPNs for an outbound product line or an export container.

Quantities:
    picked_up_qty       = Σ hu_qty of non-loosened LPNs + picked_up_loosened_qty
    final_picked_up_qty = picked_up_qty + buffer_qty

`picked_up_lpns` is a JSON list; it is always replaced, never mutated in
place, so the change is flushed.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import BusinessLogicError, ConflictError, ValidationFailedError
from app.models.tenant.container import ContainerStockAllocation
from app.models.tenant.outbound import OutboundInventory, OutboundProductLine
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.services.claims import HELD_STATUSES, assert_can_allocate, sync_allocation_lines
from app.services.status_aggregator import refresh_container
from app.services.status_rules import can_change_outbound_status, outbound_pick_status
from app.tenancy import scoped
from app.utils.activity import log_activity

logger = logging.getLogger("containa.pickup")


# ── Quantities ──────────────────────────────────────────────

def pickup_quantities(
    picked_up_lpns: list[dict] | None, loosened_qty: int | None = 0, buffer_qty: int | None = 0
) -> tuple[int, int]:
    """Return (picked_up_qty, final_picked_up_qty)."""
    picked = sum(
        int(entry.get("hu_qty") or 0)
        for entry in picked_up_lpns or []
        if not entry.get("is_loosened")
    )
    picked += int(loosened_qty or 0)
    return picked, picked + int(buffer_qty or 0)


def recalculate_pickup(pickup: PickupStock) -> None:
    pickup.picked_up_qty, pickup.final_picked_up_qty = pickup_quantities(
        pickup.picked_up_lpns, pickup.picked_up_loosened_qty, pickup.buffer_qty
    )


def lpn_entry(lpn: PutAwayStock, *, is_loosened: bool = False) -> dict:
    return {
        "lpn_id": lpn.id,
        "lpn_number": lpn.lpn_number,
        "hu_qty": lpn.hu_qty or 0,
        "location": lpn.location,
        "is_loosened": is_loosened,
    }


def _contains(pickup: PickupStock, lpn_id: str) -> bool:
    return any(entry.get("lpn_id") == lpn_id for entry in pickup.picked_up_lpns or [])


# ── LPN membership ──────────────────────────────────────────

async def lpn_in_completed_pickup(db: AsyncSession, product_line_id: str, lpn_id: str) -> bool:
    result = await db.execute(
        select(PickupStock).where(
            PickupStock.outbound_product_line_id == product_line_id,
            PickupStock.pickup_status == "completed",
        )
    )
    return any(_contains(p, lpn_id) for p in result.scalars().all())


async def remove_lpn_from_pickups(db: AsyncSession, tenant_id: str, lpn_id: str) -> int:
    """Drop an LPN from every completed pickup of the tenant. Returns pickups touched."""
    result = await db.execute(
        select(PickupStock).where(
            PickupStock.tenant_id == tenant_id,
            PickupStock.pickup_status == "completed",
        )
    )
    touched = 0
    for pickup in result.scalars().all():
        if not _contains(pickup, lpn_id):
            continue
        pickup.picked_up_lpns = [
            entry for entry in pickup.picked_up_lpns if entry.get("lpn_id") != lpn_id
        ]
        recalculate_pickup(pickup)
        touched += 1
    return touched


# ── Create / complete ───────────────────────────────────────

async def _load_lpns(
    db: AsyncSession, ctx: AuthContext, lpn_ids: list[str], *, for_update: bool = False
) -> list[PutAwayStock]:
    if not lpn_ids:
        return []
    stmt = scoped(select(PutAwayStock).where(PutAwayStock.id.in_(lpn_ids)), PutAwayStock, ctx)
    if for_update:
        stmt = stmt.with_for_update()
    lpns = {lpn.id: lpn for lpn in (await db.execute(stmt)).scalars().all()}
    missing = [lpn_id for lpn_id in lpn_ids if lpn_id not in lpns]
    if missing:
        raise ValidationFailedError(
            f"LPNs not found: {', '.join(missing)}", details={"missing": missing}
        )
    return [lpns[lpn_id] for lpn_id in lpn_ids]


def _held_for(
    lpn: PutAwayStock, product_line_id: str | None, allocation_id: str | None
) -> bool:
    if lpn.allocation_status not in HELD_STATUSES:
        return False
    if product_line_id is not None:
        return lpn.outbound_product_line_id == product_line_id
    return lpn.export_allocation_id == allocation_id


async def create_pickup(
    db: AsyncSession,
    ctx: AuthContext,
    *,
    lpn_ids: list[str],
    outbound_product_line: OutboundProductLine | None = None,
    allocation: ContainerStockAllocation | None = None,
    loosened_qty: int = 0,
    buffer_qty: int = 0,
    notes: str | None = None,
) -> PickupStock:
    """Create a draft pickup against an outbound line or a container allocation.

    Only LPNs allocated (or already picked) for that line or allocation may
    be picked.
    """
    if (outbound_product_line is None) == (allocation is None):
        raise ValidationFailedError("A pickup needs exactly one outbound line or container allocation")

    lpns = await _load_lpns(db, ctx, lpn_ids)
    line_id = outbound_product_line.id if outbound_product_line else None
    allocation_id = allocation.id if allocation else None
    wrong = [lpn.lpn_number for lpn in lpns if not _held_for(lpn, line_id, allocation_id)]
    if wrong:
        target = "this product line" if outbound_product_line else "this container allocation"
        raise ConflictError(
            f"LPNs are not allocated to {target}: {', '.join(wrong)}",
            details={"lpns": wrong},
        )

    pickup = PickupStock(
        tenant_id=ctx.require_tenant(),
        outbound_inventory_id=(
            outbound_product_line.outbound_inventory_id if outbound_product_line else None
        ),
        outbound_product_line_id=line_id,
        container_detail_id=allocation.container_detail_id if allocation else None,
        container_stock_allocation_id=allocation_id,
        picked_up_lpns=[lpn_entry(lpn) for lpn in lpns],
        picked_up_loosened_qty=loosened_qty or 0,
        buffer_qty=buffer_qty or 0,
        pickup_status="draft",
        picked_up_by=ctx.user_id,
        notes=notes,
    )
    recalculate_pickup(pickup)
    db.add(pickup)
    await db.flush()
    return pickup


async def _assert_still_held(db: AsyncSession, pickup: PickupStock, lpns: list[PutAwayStock]) -> None:
    """A draft may have gone stale: every LPN must still be held for the pickup's job."""
    for lpn in lpns:
        if _held_for(lpn, pickup.outbound_product_line_id, pickup.container_stock_allocation_id):
            continue
        await assert_can_allocate(
            db, lpn, pickup.outbound_inventory_id,
            export_allocation_id=pickup.container_stock_allocation_id,
        )
        target = "product line" if pickup.outbound_product_line_id else "container allocation"
        raise ConflictError(
            f"LPN {lpn.lpn_number} is no longer allocated to this {target}",
            details={
                "lpn_id": lpn.id,
                "lpn_number": lpn.lpn_number,
                "allocation_status": lpn.allocation_status,
            },
        )


async def complete_pickup(db: AsyncSession, ctx: AuthContext, pickup: PickupStock) -> PickupStock:
    """Mark a pickup completed and its LPNs picked, then cascade statuses."""
    if pickup.pickup_status == "completed":
        return pickup
    if pickup.pickup_status == "cancelled":
        raise BusinessLogicError("A cancelled pickup cannot be completed")

    lpn_ids = [entry["lpn_id"] for entry in pickup.picked_up_lpns or [] if entry.get("lpn_id")]
    lpns = await _load_lpns(db, ctx, lpn_ids, for_update=True)
    await _assert_still_held(db, pickup, lpns)
    for lpn in lpns:
        lpn.allocation_status = "picked"

    pickup.pickup_status = "completed"
    recalculate_pickup(pickup)
    await db.flush()

    if pickup.container_stock_allocation_id:
        await _record_container_picks(db, pickup)
        await db.flush()
        await refresh_container(db, pickup.container_detail_id)
    elif pickup.outbound_inventory_id:
        await _refresh_outbound_pick_status(db, pickup.outbound_inventory_id)

    await log_activity(
        db, ctx,
        action="picked",
        entity_type="pickup",
        entity_id=pickup.id,
        summary=f"Picked {len(lpns)} LPN(s), {pickup.final_picked_up_qty} HU",
    )
    return pickup


async def _record_container_picks(db: AsyncSession, pickup: PickupStock) -> None:
    allocation = await db.get(ContainerStockAllocation, pickup.container_stock_allocation_id)
    if allocation is None:
        logger.warning("Allocation %s for pickup %s not found", pickup.container_stock_allocation_id, pickup.id)
        return
    await sync_allocation_lines(db, allocation)
    allocation.stage = "picked"


async def _refresh_outbound_pick_status(db: AsyncSession, job_id: str) -> None:
    job = await db.get(OutboundInventory, job_id)
    if job is None:
        logger.warning("Outbound job %s not found after pickup", job_id)
        return
    statuses = (await db.execute(
        select(PutAwayStock.allocation_status).where(
            PutAwayStock.outbound_inventory_id == job_id,
            PutAwayStock.is_deleted == False,  # noqa: E712
        )
    )).scalars().all()
    new_status = outbound_pick_status(statuses, job.status)
    if new_status != job.status:
        logger.info("Outbound job %s status %s -> %s", job.job_code, job.status, new_status)
        job.status = new_status
        job.updated_at = datetime.utcnow()


# ── Manual outbound steps ───────────────────────────────────

async def change_outbound_status(
    db: AsyncSession, ctx: AuthContext, job: OutboundInventory, target: str
) -> OutboundInventory:
    """ready_to_pick, ready_to_dispatch and dispatched are set by hand.

    Dispatching marks the job's picked LPNs dispatched.
    """
    if target == job.status:
        return job
    if not can_change_outbound_status(job.status, target):
        raise ValidationFailedError(
            f"Cannot change outbound job from '{job.status}' to '{target}'",
            details={"current": job.status, "target": target},
        )

    if target == "dispatched":
        lpns = (await db.execute(
            scoped(select(PutAwayStock), PutAwayStock, ctx).where(
                PutAwayStock.outbound_inventory_id == job.id,
                PutAwayStock.allocation_status == "picked",
            ).with_for_update()
        )).scalars().all()
        for lpn in lpns:
            lpn.allocation_status = "dispatched"
        logger.info("Dispatched %d LPN(s) on %s", len(lpns), job.job_code)

    old_status = job.status
    job.status = target
    job.updated_at = datetime.utcnow()
    await log_activity(
        db, ctx,
        action="status_changed",
        entity_type="outbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        summary=f"{old_status} -> {target}",
    )
    await db.flush()
    return job
