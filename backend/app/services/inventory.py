"""Inventory aggregation: live LPNs rolled up per SKU + batch.

`aggregate_inventory_records()` is pure and works on InventoryRow values;
`load_inventory_rows()` builds those rows from the database with one
joined query per request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.models.tenant.container import ContainerDetail
from app.models.tenant.inbound import InboundInventory, InboundProductLine
from app.models.tenant.sku import SKU
from app.models.tenant.stock import PutAwayStock
from app.tenancy import scoped

# allocation_status → aggregate bucket
_BUCKETS = {
    "available": "qty_available",
    "allocated": "qty_allocated",
    "picked": "qty_picked",
    "dispatched": "qty_dispatched",
    "reserved": "qty_hold",
}


@dataclass
class InventoryRow:
    """One LPN with the facts of its SKU, inbound line and inbound job."""
    lpn_id: str
    lpn_number: str
    hu_qty: int | None
    allocation_status: str
    sku_id: str | None
    location: str | None = None
    batch_number: str | None = None
    is_deleted: bool = False
    sku_code: str | None = None
    sku_description: str | None = None
    product_line_id: str | None = None
    received_qty: int | None = None
    expiry_date: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None
    job_code: str | None = None
    customer_reference: str | None = None
    customer_name: str | None = None
    container_number: str | None = None


@dataclass
class AggregatedInventory:
    sku_id: str
    sku_code: str
    sku_description: str = ""
    batch_number: str | None = None
    qty_available: int = 0
    qty_received: int = 0
    qty_allocated: int = 0
    qty_picked: int = 0
    qty_dispatched: int = 0
    qty_hold: int = 0
    statuses: list[str] = field(default_factory=list)
    batches: list[str] = field(default_factory=list)
    lpns: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    inbound_job_codes: list[str] = field(default_factory=list)
    customer_references: list[str] = field(default_factory=list)
    container_numbers: list[str] = field(default_factory=list)
    expiry: date | None = None
    attribute1: str | None = None
    attribute2: str | None = None
    customer_name: str | None = None


def _add_distinct(values: list[str], value: str | None) -> None:
    if value and value not in values:
        values.append(value)


def aggregate_inventory_records(rows) -> list[AggregatedInventory]:
    """Group live LPN rows by (sku, batch) and total their quantities.

    Quantities land in the bucket of the LPN's allocation status. The
    received quantity of an inbound product line is counted once, however
    many LPNs were put away from it. Output order follows first appearance.
    """
    aggregated: dict[tuple[str, str | None], AggregatedInventory] = {}
    counted_lines: set[str] = set()

    for row in rows:
        if row.is_deleted or not row.sku_id:
            continue

        key = (row.sku_id, row.batch_number or None)
        item = aggregated.get(key)
        if item is None:
            item = AggregatedInventory(
                sku_id=row.sku_id,
                sku_code=row.sku_code or row.sku_id,
                sku_description=row.sku_description or "",
                batch_number=row.batch_number or None,
            )
            aggregated[key] = item

        _add_distinct(item.batches, row.batch_number)
        _add_distinct(item.lpns, row.lpn_number)
        _add_distinct(item.locations, row.location)
        _add_distinct(item.statuses, row.allocation_status)

        bucket = _BUCKETS.get(row.allocation_status)
        if bucket:
            setattr(item, bucket, getattr(item, bucket) + (row.hu_qty or 0))

        if row.product_line_id:
            item.expiry = item.expiry or row.expiry_date
            item.attribute1 = item.attribute1 or row.attribute1
            item.attribute2 = item.attribute2 or row.attribute2
            if row.received_qty and row.product_line_id not in counted_lines:
                item.qty_received += row.received_qty
                counted_lines.add(row.product_line_id)

        _add_distinct(item.inbound_job_codes, row.job_code)
        _add_distinct(item.customer_references, row.customer_reference)
        _add_distinct(item.container_numbers, row.container_number)
        item.customer_name = item.customer_name or row.customer_name

    return list(aggregated.values())


# ── Location ranges ─────────────────────────────────────────

def is_location_in_range(location: str, start: str | None = None, end: str | None = None) -> bool:
    """Lexicographic range test; an open bound matches everything on that side."""
    if not start and not end:
        return True
    if not start:
        return location <= end
    if not end:
        return location >= start
    return start <= location <= end


def format_location_range(start: str | None, end: str | None) -> str:
    if not start and not end:
        return ""
    if not start:
        return f"Up to {end}"
    if not end:
        return f"{start} and above"
    return f"{start} - {end}"


# ── Loading ─────────────────────────────────────────────────

async def load_inventory_rows(
    db: AsyncSession,
    ctx: AuthContext,
    *,
    sku_id: str | None = None,
    warehouse_id: str | None = None,
    batch_number: str | None = None,
    location_from: str | None = None,
    location_to: str | None = None,
) -> list[InventoryRow]:
    stmt = (
        select(PutAwayStock, SKU, InboundProductLine, InboundInventory, ContainerDetail)
        .outerjoin(SKU, SKU.id == PutAwayStock.sku_id)
        .outerjoin(InboundProductLine, InboundProductLine.id == PutAwayStock.inbound_product_line_id)
        .outerjoin(InboundInventory, InboundInventory.id == PutAwayStock.inbound_inventory_id)
        .outerjoin(ContainerDetail, ContainerDetail.id == PutAwayStock.container_detail_id)
        .order_by(PutAwayStock.created_at)
    )
    stmt = scoped(stmt, PutAwayStock, ctx)
    if sku_id:
        stmt = stmt.where(PutAwayStock.sku_id == sku_id)
    if warehouse_id:
        stmt = stmt.where(PutAwayStock.warehouse_id == warehouse_id)
    if batch_number:
        stmt = stmt.where(PutAwayStock.batch_number == batch_number)

    rows: list[InventoryRow] = []
    for lpn, sku, line, job, container in (await db.execute(stmt)).all():
        if (location_from or location_to) and not is_location_in_range(
            lpn.location or "", location_from, location_to
        ):
            continue
        rows.append(InventoryRow(
            lpn_id=lpn.id,
            lpn_number=lpn.lpn_number,
            hu_qty=lpn.hu_qty,
            allocation_status=lpn.allocation_status,
            sku_id=lpn.sku_id,
            location=lpn.location,
            batch_number=lpn.batch_number or (line.batch_number if line else None),
            is_deleted=lpn.is_deleted,
            sku_code=sku.sku_code if sku else None,
            sku_description=sku.description if sku else None,
            product_line_id=line.id if line else None,
            received_qty=line.received_qty if line else None,
            expiry_date=line.expiry_date if line else None,
            attribute1=line.attribute1 if line else None,
            attribute2=line.attribute2 if line else None,
            job_code=job.job_code if job else None,
            customer_reference=job.delivery_customer_reference if job else None,
            customer_name=job.customer_name if job else None,
            container_number=container.container_number if container else None,
        ))
    return rows
