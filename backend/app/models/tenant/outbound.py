"""OutboundInventory — a pick/dispatch job, and its product lines.

LPNs are allocated to individual product lines; a line's `allocated_qty`
is the sum of its LPNs' HU quantities.

Lifecycle:  draft → partially_allocated → allocated → ready_to_pick
            → partially_picked → picked → ready_to_dispatch → dispatched
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase

OUTBOUND_STATUSES = (
    "draft",
    "partially_allocated",
    "allocated",
    "ready_to_pick",
    "partially_picked",
    "picked",
    "ready_to_dispatch",
    "dispatched",
)


class OutboundInventory(TenantBase):
    __tablename__ = "outbound_inventory"
    __table_args__ = (
        UniqueConstraint("tenant_id", "job_code", name="uq_outbound_tenant_job_code"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    job_code: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(30), default="draft", index=True)

    # ── References ───────────────────────────────────────────
    customer_ref_number: Mapped[str | None] = mapped_column(String(100))
    consignee_ref_number: Mapped[str | None] = mapped_column(String(100))
    container_number: Mapped[str | None] = mapped_column(String(50))
    inspection_number: Mapped[str | None] = mapped_column(String(100))
    inbound_job_number: Mapped[str | None] = mapped_column(String(30))

    warehouse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id"), index=True
    )

    # ── Customer (tagged ref + snapshot) ─────────────────────
    customer_kind: Mapped[str | None] = mapped_column(String(30))
    customer_id: Mapped[str | None] = mapped_column(String(36))
    customer_name: Mapped[str | None] = mapped_column(String(255))
    customer_location: Mapped[str | None] = mapped_column(String(100))
    customer_state: Mapped[str | None] = mapped_column(String(50))
    customer_contact: Mapped[str | None] = mapped_column(String(255))

    # ── Deliver to (customer, paying customer or warehouse) ──
    customer_to_kind: Mapped[str | None] = mapped_column(String(30))
    customer_to_id: Mapped[str | None] = mapped_column(String(36))
    customer_to_name: Mapped[str | None] = mapped_column(String(255))
    customer_to_location: Mapped[str | None] = mapped_column(String(100))
    customer_to_state: Mapped[str | None] = mapped_column(String(50))
    customer_to_contact: Mapped[str | None] = mapped_column(String(255))

    # ── Collect from ─────────────────────────────────────────
    customer_from_kind: Mapped[str | None] = mapped_column(String(30))
    customer_from_id: Mapped[str | None] = mapped_column(String(36))
    customer_from_name: Mapped[str | None] = mapped_column(String(255))
    customer_from_location: Mapped[str | None] = mapped_column(String(100))
    customer_from_state: Mapped[str | None] = mapped_column(String(50))
    customer_from_contact: Mapped[str | None] = mapped_column(String(255))

    required_date_time: Mapped[datetime | None] = mapped_column(DateTime)
    order_notes: Mapped[str | None] = mapped_column(Text)
    pallet_count: Mapped[int | None] = mapped_column(Integer)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def _party(self, prefix: str) -> dict | None:
        ref_id = getattr(self, f"{prefix}_id")
        if not ref_id:
            return None
        return {"kind": getattr(self, f"{prefix}_kind"), "id": ref_id}

    @property
    def customer(self) -> dict | None:
        return self._party("customer")

    @property
    def customer_to(self) -> dict | None:
        return self._party("customer_to")

    @property
    def customer_from(self) -> dict | None:
        return self._party("customer_from")


class OutboundProductLine(TenantBase):
    __tablename__ = "outbound_product_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    outbound_inventory_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("outbound_inventory.id"), nullable=False, index=True
    )
    sku_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("skus.id"), index=True
    )
    sku_description: Mapped[str | None] = mapped_column(String(255))
    batch_number: Mapped[str | None] = mapped_column(String(100))
    expiry: Mapped[date | None] = mapped_column(Date)
    attribute1: Mapped[str | None] = mapped_column(String(100))
    attribute2: Mapped[str | None] = mapped_column(String(100))

    # ── Quantities ───────────────────────────────────────────
    expected_qty: Mapped[int | None] = mapped_column(Integer)
    allocated_qty: Mapped[int] = mapped_column(Integer, default=0)
    expected_weight: Mapped[float | None] = mapped_column(Float)
    allocated_weight: Mapped[float | None] = mapped_column(Float)
    required_cubic_per_hu: Mapped[float | None] = mapped_column(Float)
    allocated_cubic_per_hu: Mapped[float | None] = mapped_column(Float)
    plt_qty: Mapped[float | None] = mapped_column(Float)

    container_number: Mapped[str | None] = mapped_column(String(50))
    location: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
