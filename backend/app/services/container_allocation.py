"""Export container allocation: claim LPNs for an export stock allocation.

Works per allocation line, the same two ways as outbound allocation:
  - manual:   the caller names the LPNs (`lpn_ids`)
  - quantity: whole available LPNs of the line's SKU (and batch, and the
              container's warehouse) in pick order, until the line's
              remaining expected quantity, or a smaller requested one, is
              covered

Claimed LPNs carry `export_allocation_id`; the line quantities are then
derived from them. Container pickups only take LPNs claimed here.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from app.models.tenant.container import (
    AllocationProductLine,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.stock import PutAwayStock
from app.services.allocation import candidate_lpns, take_whole_lpns
from app.services.claims import assert_can_allocate, release_claim, sync_allocation_lines
from app.services.status_aggregator import refresh_container
from app.tenancy import scoped
from app.utils.activity import log_activity

logger = logging.getLogger("containa.container_allocation")


def _line(allocation: ContainerStockAllocation, line_id: str) -> AllocationProductLine:
    for line in allocation.lines:
        if line.id == line_id:
            return line
    raise ResourceNotFoundError("Allocation product line", line_id)


def _remaining(line: AllocationProductLine) -> int:
    return max(int(line.expected_qty or 0) - int(line.allocated_qty or 0), 0)


async def _manual_lpns(
    db: AsyncSession,
    ctx: AuthContext,
    container: ContainerDetail,
    allocation: ContainerStockAllocation,
    line: AllocationProductLine,
    lpn_ids: list[str],
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
    if line.batch_number:
        wrong_batch = [lpn.lpn_number for lpn in lpns if lpn.batch_number != line.batch_number]
        if wrong_batch:
            raise ValidationFailedError(
                f"LPNs are not from batch {line.batch_number}: {', '.join(wrong_batch)}",
                details={"lpns": wrong_batch},
            )
    if container.warehouse_id:
        elsewhere = [lpn.lpn_number for lpn in lpns if lpn.warehouse_id != container.warehouse_id]
        if elsewhere:
            raise ValidationFailedError(
                f"LPNs are not in the container's warehouse: {', '.join(elsewhere)}",
                details={"lpns": elsewhere},
            )

    for lpn in lpns:
        if lpn.allocation_status == "available":
            continue
        if lpn.allocation_status == "allocated" and lpn.export_allocation_id == allocation.id:
            continue
        await assert_can_allocate(db, lpn, export_allocation_id=allocation.id)
        raise ConflictError(
            f"LPN {lpn.lpn_number} is {lpn.allocation_status} and cannot be allocated",
            details={"lpn_number": lpn.lpn_number, "allocation_status": lpn.allocation_status},
        )
    return lpns


async def allocate_to_container(
    db: AsyncSession,
    ctx: AuthContext,
    container: ContainerDetail,
    allocation: ContainerStockAllocation,
    requests: list[dict],
) -> list[dict]:
    """Claim LPNs for lines of an export allocation. Returns one summary per line.

    All-or-nothing like outbound allocation: any rejected line aborts the
    transaction.
    """
    if not requests:
        raise ValidationFailedError("Allocations array is required")

    results: list[dict] = []
    for request in requests:
        line = _line(allocation, request["line_id"])
        if not line.sku_id:
            raise ValidationFailedError(
                "Product line does not have a SKU", details={"line_id": line.id}
            )

        if request.get("lpn_ids"):
            lpns = await _manual_lpns(db, ctx, container, allocation, line, request["lpn_ids"])
        else:
            remaining = _remaining(line)
            if remaining <= 0:
                raise ValidationFailedError(
                    f"Product line is already fully allocated "
                    f"({line.allocated_qty or 0}/{line.expected_qty or 0})",
                    details={"line_id": line.id},
                )
            quantity = min(request.get("quantity") or remaining, remaining)
            candidates = await candidate_lpns(
                db, ctx, line.sku_id,
                warehouse_id=container.warehouse_id,
                batch_number=line.batch_number,
            )
            lpns = take_whole_lpns(
                candidates, quantity,
                allocated=line.allocated_qty or 0,
                expected=line.expected_qty or 0,
                line_id=line.id,
                batch_number=line.batch_number,
            )

        now = datetime.utcnow()
        newly_allocated: list[str] = []
        for lpn in lpns:
            await assert_can_allocate(db, lpn, export_allocation_id=allocation.id)
            if lpn.export_allocation_id == allocation.id and lpn.allocation_status == "allocated":
                continue
            lpn.allocation_status = "allocated"
            lpn.export_allocation_id = allocation.id
            lpn.allocated_at = now
            lpn.allocated_by = ctx.user_id
            newly_allocated.append(lpn.lpn_number)

        await sync_allocation_lines(db, allocation)
        results.append({
            "line_id": line.id,
            "allocated_lpns": newly_allocated,
            "allocated_qty": line.allocated_qty,
            "expected_qty": line.expected_qty,
        })
        if newly_allocated:
            logger.info(
                "Allocated %d LPN(s) to container %s",
                len(newly_allocated), container.container_number,
            )
            await log_activity(
                db, ctx,
                action="allocated",
                entity_type="container",
                entity_id=container.id,
                entity_code=container.container_number,
                summary=f"Allocated {len(newly_allocated)} LPN(s) to {container.container_number}",
                details={"allocation_id": allocation.id, "line_id": line.id, "lpns": newly_allocated},
            )

    await db.flush()
    await refresh_container(db, container.id)
    return results


async def release_from_container(
    db: AsyncSession,
    ctx: AuthContext,
    container: ContainerDetail,
    allocation: ContainerStockAllocation,
    lpn_ids: list[str] | None = None,
) -> list[str]:
    """Return an allocation's allocated (not yet picked) LPNs to available stock."""
    stmt = select(PutAwayStock).where(
        PutAwayStock.export_allocation_id == allocation.id,
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

    await sync_allocation_lines(db, allocation)
    await db.flush()
    await refresh_container(db, container.id)
    if released:
        await log_activity(
            db, ctx,
            action="deallocated",
            entity_type="container",
            entity_id=container.id,
            entity_code=container.container_number,
            summary=f"Released {len(released)} LPN(s) from {container.container_number}",
            details={"allocation_id": allocation.id, "lpns": released},
        )
    await db.flush()
    return released


async def stock_for_allocation(
    db: AsyncSession,
    ctx: AuthContext,
    container: ContainerDetail,
    allocation: ContainerStockAllocation,
    line_id: str | None = None,
) -> list[dict]:
    """Per line: LPNs that could be allocated, and LPNs already allocated here."""
    lines = [_line(allocation, line_id)] if line_id else list(allocation.lines)
    claimed = (await db.execute(
        scoped(select(PutAwayStock), PutAwayStock, ctx).where(
            PutAwayStock.export_allocation_id == allocation.id
        ).order_by(PutAwayStock.lpn_number)
    )).scalars().all()

    stock = []
    for line in lines:
        available: list[PutAwayStock] = []
        if line.sku_id:
            available = await candidate_lpns(
                db, ctx, line.sku_id,
                warehouse_id=container.warehouse_id,
                batch_number=line.batch_number,
                for_update=False,
            )
        stock.append({
            "line_id": line.id,
            "sku_id": line.sku_id,
            "batch_number": line.batch_number,
            "expected_qty": line.expected_qty,
            "allocated_qty": line.allocated_qty,
            "available": available,
            "allocated": [
                lpn for lpn in claimed
                if lpn.sku_id == line.sku_id
                and (not line.batch_number or lpn.batch_number == line.batch_number)
            ],
        })
    return stock
