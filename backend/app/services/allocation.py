"""Outbound allocation: claim LPNs for outbound product lines.

Two modes per product line:
  - manual:   the caller names the LPNs (`lpn_ids`)
  - quantity: whole available LPNs are taken oldest-first (FIFO), or by
              earliest expiry (FEFO) when the SKU's pick strategy says so,
              until the requested HU quantity is covered. The quantity is
              capped at what the line still expects; stock that cannot
              cover it rejects the line

A request is all-or-nothing: any rejected line aborts the transaction.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.models.tenant.inbound import InboundProductLine
from app.models.tenant.outbound import OutboundInventory, OutboundProductLine
from app.models.tenant.sku import SKU
from app.models.tenant.stock import PutAwayStock
from app.services.claims import assert_can_allocate, release_claim
from app.services.lpn import refresh_outbound_job, sync_outbound_line
from app.services.status_rules import line_fully_allocated
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity

logger = logging.getLogger("containa.allocation")


def _remaining(line: OutboundProductLine) -> int:
    return max(int(line.expected_qty or 0) - int(line.allocated_qty or 0), 0)


async def _load_line(
    db: AsyncSession, ctx: AuthContext, job: OutboundInventory, line_id: str
) -> OutboundProductLine:
    line = await get_owned(db, OutboundProductLine, line_id, ctx, label="Outbound product line")
    if line.outbound_inventory_id != job.id:
        raise ValidationFailedError("Product line does not belong to this job")
    if not line.sku_id:
        raise ValidationFailedError("Product line does not have a SKU")
    return line


async def _manual_lpns(
    db: AsyncSession,
    ctx: AuthContext,
    line: OutboundProductLine,
    lpn_ids: list[str],
    batch_number: str | None,
) -> list[PutAwayStock]:
    result = await db.execute(
        scoped(select(PutAwayStock).where(PutAwayStock.id.in_(lpn_ids)), PutAwayStock, ctx)
        .with_for_update()
    )
    found = {lpn.id: lpn for lpn in result.scalars().all()}
    missing = [lpn_id for lpn_id in lpn_ids if lpn_id not in found]
    if missing:
        raise ValidationFailedError(
            f"LPNs not found: {', '.join(missing)}", details={"missing": missing}
        )
    lpns = [found[lpn_id] for lpn_id in lpn_ids]

    wrong_sku = [lpn.lpn_number for lpn in lpns if lpn.sku_id != line.sku_id]
    if wrong_sku:
        raise ValidationFailedError(
            f"LPNs hold a different SKU: {', '.join(wrong_sku)}", details={"lpns": wrong_sku}
        )
    if batch_number:
        wrong_batch = [lpn.lpn_number for lpn in lpns if lpn.batch_number != batch_number]
        if wrong_batch:
            raise ValidationFailedError(
                f"LPNs are not from batch {batch_number}: {', '.join(wrong_batch)}",
                details={"lpns": wrong_batch},
            )

    claimed = [
        lpn for lpn in lpns
        if not (
            lpn.allocation_status == "available"
            or (lpn.allocation_status == "allocated" and lpn.outbound_product_line_id == line.id)
        )
    ]
    if claimed:
        numbers = [lpn.lpn_number for lpn in claimed]
        raise ConflictError(
            f"LPNs are allocated elsewhere or unavailable: {', '.join(numbers)}",
            details={"lpns": [
                {
                    "lpn_number": lpn.lpn_number,
                    "allocation_status": lpn.allocation_status,
                    "outbound_inventory_id": lpn.outbound_inventory_id,
                    "export_allocation_id": lpn.export_allocation_id,
                }
                for lpn in claimed
            ]},
        )
    return lpns


async def candidate_lpns(
    db: AsyncSession,
    ctx: AuthContext,
    sku_id: str,
    *,
    warehouse_id: str | None = None,
    batch_number: str | None = None,
    for_update: bool = True,
) -> list[PutAwayStock]:
    """Available LPNs of a SKU in pick order, locked for update by default.

    Oldest first (FIFO), or earliest expiry first when the SKU's pick
    strategy is FEFO.
    """
    strategy = await db.scalar(select(SKU.pick_strategy).where(SKU.id == sku_id))

    stmt = select(PutAwayStock).where(
        PutAwayStock.sku_id == sku_id,
        PutAwayStock.allocation_status == "available",
    )
    if warehouse_id:
        stmt = stmt.where(PutAwayStock.warehouse_id == warehouse_id)
    if batch_number:
        stmt = stmt.where(PutAwayStock.batch_number == batch_number)
    if strategy == "FEFO":
        stmt = stmt.outerjoin(
            InboundProductLine, InboundProductLine.id == PutAwayStock.inbound_product_line_id
        ).order_by(InboundProductLine.expiry_date.asc().nulls_last(), PutAwayStock.created_at)
    else:
        stmt = stmt.order_by(PutAwayStock.created_at, PutAwayStock.lpn_number)
    stmt = scoped(stmt, PutAwayStock, ctx)
    if for_update:
        stmt = stmt.with_for_update(of=PutAwayStock)
    return list((await db.execute(stmt)).scalars().all())


def take_whole_lpns(
    candidates: list[PutAwayStock], quantity: int, *, allocated: int = 0, expected: int = 0, **details
) -> list[PutAwayStock]:
    """Take whole LPNs in order until `quantity` HU are covered.

    Raises ValidationFailedError when the candidates cannot cover it.
    """
    chosen: list[PutAwayStock] = []
    covered = 0
    for lpn in candidates:
        if covered >= quantity:
            break
        chosen.append(lpn)
        covered += lpn.hu_qty or 0
    if not chosen:
        raise ValidationFailedError("No available stock for this product line", details=details)
    if covered < quantity:
        raise ValidationFailedError(
            f"Insufficient stock. Available: {covered}, Still needed: {quantity} "
            f"(already allocated: {allocated}/{expected})",
            details={**details, "available": covered, "still_needed": quantity},
        )
    return chosen


async def _pick_by_quantity(
    db: AsyncSession,
    ctx: AuthContext,
    job: OutboundInventory,
    line: OutboundProductLine,
    quantity: int,
    batch_number: str | None,
) -> list[PutAwayStock]:
    candidates = await candidate_lpns(
        db, ctx, line.sku_id, warehouse_id=job.warehouse_id, batch_number=batch_number
    )
    return take_whole_lpns(
        candidates, quantity,
        allocated=line.allocated_qty or 0,
        expected=line.expected_qty or 0,
        product_line_id=line.id,
        batch_number=batch_number,
    )


async def allocate(
    db: AsyncSession, ctx: AuthContext, job: OutboundInventory, requests: list[dict]
) -> list[dict]:
    """Allocate LPNs to product lines of `job`. Returns one summary per line."""
    if not requests:
        raise ValidationFailedError("Allocations array is required")

    results: list[dict] = []
    for request in requests:
        line = await _load_line(db, ctx, job, request["product_line_id"])
        if (line.expected_qty or 0) > 0 and line_fully_allocated(line):
            raise ValidationFailedError(
                f"Product line is already fully allocated "
                f"({line.allocated_qty}/{line.expected_qty})",
                details={"product_line_id": line.id},
            )

        batch_number = request.get("batch_number")
        if request.get("lpn_ids"):
            lpns = await _manual_lpns(db, ctx, line, request["lpn_ids"], batch_number)
        else:
            remaining = _remaining(line)
            if remaining <= 0:
                raise ValidationFailedError(
                    "Product line has no expected quantity left to allocate",
                    details={"product_line_id": line.id},
                )
            quantity = min(request.get("quantity") or remaining, remaining)
            lpns = await _pick_by_quantity(db, ctx, job, line, quantity, batch_number)

        now = datetime.utcnow()
        newly_allocated: list[str] = []
        for lpn in lpns:
            await assert_can_allocate(db, lpn, job.id)
            if lpn.outbound_product_line_id == line.id and lpn.allocation_status == "allocated":
                continue
            lpn.allocation_status = "allocated"
            lpn.outbound_inventory_id = job.id
            lpn.outbound_product_line_id = line.id
            lpn.allocated_at = now
            lpn.allocated_by = ctx.user_id
            newly_allocated.append(lpn.lpn_number)

        await sync_outbound_line(db, line)
        results.append({
            "product_line_id": line.id,
            "allocated_lpns": newly_allocated,
            "allocated_qty": line.allocated_qty,
            "expected_qty": line.expected_qty,
        })
        if newly_allocated:
            logger.info(
                "Allocated %d LPN(s) to line %s of %s", len(newly_allocated), line.id, job.job_code
            )
            await log_activity(
                db, ctx,
                action="allocated",
                entity_type="outbound_job",
                entity_id=job.id,
                entity_code=job.job_code,
                summary=f"Allocated {len(newly_allocated)} LPN(s) to {job.job_code}",
                details={"product_line_id": line.id, "lpns": newly_allocated},
            )

    await refresh_outbound_job(db, job.id)
    await db.flush()
    return results


async def release(
    db: AsyncSession,
    ctx: AuthContext,
    job: OutboundInventory,
    product_line_id: str,
    lpn_ids: list[str] | None = None,
) -> list[str]:
    """Return a line's allocated (not yet picked) LPNs to available stock."""
    line = await _load_line(db, ctx, job, product_line_id)
    stmt = select(PutAwayStock).where(
        PutAwayStock.outbound_product_line_id == line.id,
        PutAwayStock.allocation_status == "allocated",
    )
    if lpn_ids:
        stmt = stmt.where(PutAwayStock.id.in_(lpn_ids))
    lpns = (await db.execute(scoped(stmt, PutAwayStock, ctx).with_for_update())).scalars().all()

    released = []
    for lpn in lpns:
        lpn.allocation_status = "available"
        release_claim(lpn)
        released.append(lpn.lpn_number)

    await sync_outbound_line(db, line)
    await refresh_outbound_job(db, job.id, reset_when_empty=True)
    if released:
        await log_activity(
            db, ctx,
            action="deallocated",
            entity_type="outbound_job",
            entity_id=job.id,
            entity_code=job.job_code,
            summary=f"Released {len(released)} LPN(s) from {job.job_code}",
            details={"product_line_id": line.id, "lpns": released},
        )
    await db.flush()
    return released
