"""Physical stock: put-away pallets (LPNs) and pickup records.

PutAwayStock is one pallet (License Plate Number) sitting in a warehouse
location. It is created by an inbound or import-container put-away and may
be claimed by exactly one outbound product line or export container
allocation at a time.

    allocation_status:  available → reserved/allocated → picked → dispatched

PickupStock records a pick of one or more LPNs against an outbound line or
an export container allocation.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase

LPN_STATUSES = ("available", "reserved", "allocated", "picked", "dispatched")
PICKUP_STATUSES = ("draft", "completed", "cancelled")


class PutAwayStock(TenantBase):
    __tablename__ = "put_away_stock"
    __table_args__ = (
        UniqueConstraint("tenant_id", "lpn_number", name="uq_put_away_tenant_lpn"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    lpn_number: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # ── Origin (inbound job or import container) ─────────────
    inbound_inventory_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("inbound_inventory.id"), index=True
    )
    inbound_product_line_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("inbound_product_lines.id"), index=True
    )
    container_detail_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_details.id"), index=True
    )
    container_stock_allocation_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_stock_allocations.id")
    )

    # ── What / where ─────────────────────────────────────────
    sku_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("skus.id"), index=True
    )
    batch_number: Mapped[str | None] = mapped_column(String(100))
    warehouse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id"), index=True
    )
    location: Mapped[str | None] = mapped_column(String(100), index=True)
    hu_qty: Mapped[int] = mapped_column(Integer, default=0)

    # ── Allocation ───────────────────────────────────────────
    allocation_status: Mapped[str] = mapped_column(
        String(20), default="available", index=True
    )
    outbound_inventory_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("outbound_inventory.id"), index=True
    )
    outbound_product_line_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("outbound_product_lines.id"), index=True
    )
    # Export container claim; an LPN is claimed by an outbound line or an
    # export allocation, never both
    export_allocation_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_stock_allocations.id"), index=True
    )
    allocated_at: Mapped[datetime | None] = mapped_column(DateTime)
    allocated_by: Mapped[str | None] = mapped_column(String(36))

    # ── Soft delete ──────────────────────────────────────────
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)
    deleted_by: Mapped[str | None] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class PickupStock(TenantBase):
    __tablename__ = "pickup_stock"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # ── Source: outbound line or export container allocation ──
    outbound_inventory_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("outbound_inventory.id"), index=True
    )
    outbound_product_line_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("outbound_product_lines.id"), index=True
    )
    container_detail_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_details.id"), index=True
    )
    container_stock_allocation_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("container_stock_allocations.id")
    )

    # [{"lpn_id", "lpn_number", "hu_qty", "location", "is_loosened"}, ...]
    picked_up_lpns: Mapped[list | None] = mapped_column(JSON)
    picked_up_loosened_qty: Mapped[int] = mapped_column(Integer, default=0)
    buffer_qty: Mapped[int] = mapped_column(Integer, default=0)
    picked_up_qty: Mapped[int] = mapped_column(Integer, default=0)
    final_picked_up_qty: Mapped[int] = mapped_column(Integer, default=0)

    # draft | completed | cancelled
    pickup_status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    picked_up_by: Mapped[str | None] = mapped_column(String(36))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
