"""Receiving and put-away.

Inbound jobs:   receive (quantities per line) → put-away (LPNs per line)
Import boxes:   container allocation lines are received through the
                stock-allocation endpoints; put-away creates LPNs linked to
                the container and its allocation, then the container status
                is recomputed.

Each put-away pallet becomes one PutAwayStock row with a fresh LPN number.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import BusinessLogicError, ValidationFailedError
from app.models.tenant.container import (
    ContainerBooking,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.inbound import InboundInventory, InboundProductLine
from app.models.tenant.stock import PutAwayStock
from app.services.status_aggregator import refresh_container
from app.tenancy import get_owned
from app.utils.activity import log_activity
from app.utils.numbering import generate_lpn_numbers

logger = logging.getLogger("containa.put_away")


def all_lines_received(lines) -> bool:
    return bool(lines) and all((line.received_qty or 0) > 0 for line in lines)


async def _job_lines(db: AsyncSession, job_id: str) -> list[InboundProductLine]:
    result = await db.execute(
        select(InboundProductLine)
        .where(InboundProductLine.inbound_inventory_id == job_id)
        .order_by(InboundProductLine.created_at)
    )
    return list(result.scalars().all())


# ── Inbound receive ─────────────────────────────────────────

async def receive_inbound(
    db: AsyncSession, ctx: AuthContext, job: InboundInventory, receipts: list[dict]
) -> InboundInventory:
    """Record received quantities; completes the job once every line is received."""
    if not receipts:
        raise ValidationFailedError("At least one received line is required")

    lines = {line.id: line for line in await _job_lines(db, job.id)}
    unknown = [r["product_line_id"] for r in receipts if r["product_line_id"] not in lines]
    if unknown:
        raise ValidationFailedError(
            f"Product lines not on this job: {', '.join(unknown)}", details={"lines": unknown}
        )

    for receipt in receipts:
        line = lines[receipt["product_line_id"]]
        line.received_qty = receipt["received_qty"]
        if receipt.get("received_weight") is not None:
            line.received_weight = receipt["received_weight"]
        if receipt.get("received_cubic_per_hu") is not None:
            line.received_cubic_per_hu = receipt["received_cubic_per_hu"]

    if job.completed_date is None and all_lines_received(list(lines.values())):
        job.completed_date = datetime.utcnow()
        logger.info("Inbound job %s fully received", job.job_code)

    await log_activity(
        db, ctx,
        action="received",
        entity_type="inbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        summary=f"Received {len(receipts)} line(s)",
    )
    await db.flush()
    return job


# ── Inbound put-away ────────────────────────────────────────

async def _put_away_total(db: AsyncSession, line_id: str) -> int:
    total = await db.scalar(
        select(func.coalesce(func.sum(PutAwayStock.hu_qty), 0)).where(
            PutAwayStock.inbound_product_line_id == line_id,
            PutAwayStock.is_deleted == False,  # noqa: E712
        )
    )
    return int(total or 0)


def _check_pallets(pallets: list[dict]) -> int:
    if not pallets:
        raise ValidationFailedError("At least one pallet is required")
    bad = [i for i, p in enumerate(pallets) if (p.get("hu_qty") or 0) <= 0]
    if bad:
        raise ValidationFailedError(
            "Every pallet needs a positive HU quantity", details={"pallets": bad}
        )
    return sum(int(p["hu_qty"]) for p in pallets)


async def put_away_inbound(
    db: AsyncSession,
    ctx: AuthContext,
    job: InboundInventory,
    product_line_id: str,
    pallets: list[dict],
    *,
    warehouse_id: str | None = None,
) -> list[PutAwayStock]:
    line = await get_owned(db, InboundProductLine, product_line_id, ctx, label="Inbound product line")
    if line.inbound_inventory_id != job.id:
        raise ValidationFailedError("Product line does not belong to this job")
    if not line.received_qty:
        raise BusinessLogicError("Receive the product line before putting it away")

    requested = _check_pallets(pallets)
    already = await _put_away_total(db, line.id)
    if already + requested > line.received_qty:
        raise ValidationFailedError(
            f"Put-away of {requested} HU exceeds the received quantity "
            f"({already} of {line.received_qty} already put away)"
        )

    tenant_id = ctx.require_tenant()
    numbers = await generate_lpn_numbers(db, tenant_id, len(pallets))
    lpns = []
    for number, pallet in zip(numbers, pallets):
        lpn = PutAwayStock(
            tenant_id=tenant_id,
            lpn_number=number,
            inbound_inventory_id=job.id,
            inbound_product_line_id=line.id,
            sku_id=line.sku_id,
            batch_number=line.batch_number,
            warehouse_id=warehouse_id or job.warehouse_id,
            location=pallet.get("location"),
            hu_qty=int(pallet["hu_qty"]),
            allocation_status="available",
        )
        db.add(lpn)
        lpns.append(lpn)

    await log_activity(
        db, ctx,
        action="put_away",
        entity_type="inbound_job",
        entity_id=job.id,
        entity_code=job.job_code,
        summary=f"Put away {len(lpns)} LPN(s), {requested} HU",
        details={"lpns": numbers},
    )
    await db.flush()
    return lpns


# ── Import container put-away ───────────────────────────────

async def put_away_container(
    db: AsyncSession,
    ctx: AuthContext,
    booking: ContainerBooking,
    container: ContainerDetail,
    allocation_id: str,
    pallets: list[dict],
    *,
    warehouse_id: str | None = None,
) -> list[PutAwayStock]:
    """Create LPNs for an allocation line of an import container.

    Each pallet names the allocation line (`line_id`) it is put away from.
    """
    allocation = await get_owned(
        db, ContainerStockAllocation, allocation_id, ctx, label="Stock allocation"
    )
    if allocation.container_detail_id != container.id:
        raise ValidationFailedError("Stock allocation does not belong to this container")

    _check_pallets(pallets)
    lines = {line.id: line for line in allocation.lines}
    unknown = [p.get("line_id") for p in pallets if p.get("line_id") not in lines]
    if unknown:
        raise ValidationFailedError(
            "Every pallet must name a product line of the allocation",
            details={"lines": unknown},
        )
    not_received = sorted({
        p["line_id"] for p in pallets if not (lines[p["line_id"]].received_qty or 0)
    })
    if not_received:
        raise BusinessLogicError(
            "Product lines must be received before put-away", details={"lines": not_received}
        )

    tenant_id = ctx.require_tenant()
    numbers = await generate_lpn_numbers(db, tenant_id, len(pallets))
    lpns = []
    for number, pallet in zip(numbers, pallets):
        line = lines[pallet["line_id"]]
        lpn = PutAwayStock(
            tenant_id=tenant_id,
            lpn_number=number,
            container_detail_id=container.id,
            container_stock_allocation_id=allocation.id,
            sku_id=line.sku_id,
            batch_number=line.batch_number,
            warehouse_id=warehouse_id or container.warehouse_id,
            location=pallet.get("location") or line.location,
            hu_qty=int(pallet["hu_qty"]),
            allocation_status="available",
        )
        db.add(lpn)
        lpns.append(lpn)

    allocation.stage = "put_away"
    await db.flush()
    await refresh_container(db, container.id)

    await log_activity(
        db, ctx,
        action="put_away",
        entity_type="container",
        entity_id=container.id,
        entity_code=container.container_number,
        summary=f"Put away {len(lpns)} LPN(s) from {booking.booking_code}",
        details={"lpns": numbers},
    )
    await db.flush()
    return lpns
