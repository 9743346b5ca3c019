"""LPN claims: who holds a pallet, and the quantities derived from that.

An LPN held for work (allocated or picked) belongs either to one outbound
job or to one export container allocation. Every path that hands an LPN to
a job (outbound allocation, export allocation, manual edits, pickups) runs
`assert_can_allocate` on the row it loaded FOR UPDATE.

Export allocation lines carry no LPN ids; their allocated and picked
quantities are summed from the LPNs claiming the allocation, matched to a
line by SKU and batch.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.exceptions import ConflictError
from app.models.tenant.container import (
    AllocationProductLine,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.outbound import OutboundInventory
from app.models.tenant.sku import SKU
from app.models.tenant.stock import PutAwayStock
from app.services.sku_calculator import ratio

logger = logging.getLogger("containa.claims")

# Statuses in which an LPN is held by a job
HELD_STATUSES = ("allocated", "picked")

# Statuses that count towards a line's allocated quantity
CLAIMED_STATUSES = ("allocated", "picked", "dispatched")

PICKED_STATUSES = ("picked", "dispatched")


# ── Guard ───────────────────────────────────────────────────

def allocation_conflict(
    lpn: PutAwayStock,
    outbound_inventory_id: str | None = None,
    *,
    export_allocation_id: str | None = None,
) -> bool:
    """True when the LPN is held by a job other than the requested one."""
    if lpn.allocation_status not in HELD_STATUSES:
        return False
    if lpn.outbound_inventory_id is not None:
        return lpn.outbound_inventory_id != outbound_inventory_id
    if lpn.export_allocation_id is not None:
        return lpn.export_allocation_id != export_allocation_id
    return False


async def assert_can_allocate(
    db: AsyncSession,
    lpn: PutAwayStock,
    outbound_inventory_id: str | None = None,
    *,
    export_allocation_id: str | None = None,
) -> None:
    """Raise ConflictError naming the job that currently holds the LPN.

    Re-allocating to the job that already holds it is a no-op.
    """
    if not allocation_conflict(
        lpn, outbound_inventory_id, export_allocation_id=export_allocation_id
    ):
        return

    if lpn.outbound_inventory_id is not None:
        job_code = await db.scalar(
            select(OutboundInventory.job_code).where(
                OutboundInventory.id == lpn.outbound_inventory_id
            )
        )
        raise ConflictError(
            f"LPN {lpn.lpn_number} is already allocated to outbound job "
            f"{job_code or lpn.outbound_inventory_id}",
            details={
                "lpn_id": lpn.id,
                "lpn_number": lpn.lpn_number,
                "outbound_inventory_id": lpn.outbound_inventory_id,
                "job_code": job_code,
            },
        )

    container_number = await db.scalar(
        select(ContainerDetail.container_number)
        .join(
            ContainerStockAllocation,
            ContainerStockAllocation.container_detail_id == ContainerDetail.id,
        )
        .where(ContainerStockAllocation.id == lpn.export_allocation_id)
    )
    raise ConflictError(
        f"LPN {lpn.lpn_number} is already allocated to container "
        f"{container_number or lpn.export_allocation_id}",
        details={
            "lpn_id": lpn.id,
            "lpn_number": lpn.lpn_number,
            "export_allocation_id": lpn.export_allocation_id,
            "container_number": container_number,
        },
    )


def release_claim(lpn: PutAwayStock) -> None:
    """Clear every job reference on an LPN going back to available."""
    lpn.outbound_inventory_id = None
    lpn.outbound_product_line_id = None
    lpn.export_allocation_id = None
    lpn.allocated_at = None
    lpn.allocated_by = None


# ── Export allocation lines ─────────────────────────────────

def match_line(
    lines: list[AllocationProductLine], lpn: PutAwayStock
) -> AllocationProductLine | None:
    """The line an LPN counts towards: same SKU and batch, else same SKU with no batch."""
    fallback = None
    for line in lines:
        if line.sku_id != lpn.sku_id:
            continue
        if line.batch_number and line.batch_number == lpn.batch_number:
            return line
        if not line.batch_number and fallback is None:
            fallback = line
    return fallback


async def sync_allocation_lines(db: AsyncSession, allocation: ContainerStockAllocation) -> None:
    """Recompute allocated_qty and picked_qty of an export allocation's lines."""
    await db.flush()
    lpns = (await db.execute(
        select(PutAwayStock).where(
            PutAwayStock.export_allocation_id == allocation.id,
            PutAwayStock.allocation_status.in_(CLAIMED_STATUSES),
            PutAwayStock.is_deleted == False,  # noqa: E712
        )
    )).scalars().all()

    allocated: dict[str, int] = {}
    picked: dict[str, int] = {}
    for lpn in lpns:
        line = match_line(allocation.lines, lpn)
        if line is None:
            logger.warning(
                "LPN %s on allocation %s matches no product line", lpn.lpn_number, allocation.id
            )
            continue
        allocated[line.id] = allocated.get(line.id, 0) + (lpn.hu_qty or 0)
        if lpn.allocation_status in PICKED_STATUSES:
            picked[line.id] = picked.get(line.id, 0) + (lpn.hu_qty or 0)

    for line in allocation.lines:
        line.allocated_qty = allocated.get(line.id, 0)
        line.picked_qty = picked.get(line.id, 0)
        if line.sku_id and line.allocated_qty:
            hu_per_su = await db.scalar(select(SKU.hu_per_su).where(SKU.id == line.sku_id))
            line.plt_qty = ratio(line.allocated_qty, hu_per_su)
