"""InboundInventory — a receiving job at a warehouse, and its product lines.

Product lines are enriched from the SKU (description, HU dimensions,
storage footprint) by `app.services.sku_calculator` whenever they are saved.

Lifecycle:  expected → receiving (received_qty captured) → completed
            (completed_date set once every line has been received)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import TenantBase


class InboundInventory(TenantBase):
    __tablename__ = "inbound_inventory"
    __table_args__ = (
        UniqueConstraint("tenant_id", "job_code", name="uq_inbound_tenant_job_code"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    job_code: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    expected_date: Mapped[date | None] = mapped_column(Date)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime)

    # ── References ───────────────────────────────────────────
    delivery_customer_reference: Mapped[str | None] = mapped_column(String(100))
    ordering_customer_reference: Mapped[str | None] = mapped_column(String(100))

    # ── Delivery customer (tagged ref + snapshot) ────────────
    delivery_customer_kind: Mapped[str | None] = mapped_column(String(30))
    delivery_customer_id: Mapped[str | None] = mapped_column(String(36))
    customer_name: Mapped[str | None] = mapped_column(String(255))
    customer_location: Mapped[str | None] = mapped_column(String(100))
    customer_state: Mapped[str | None] = mapped_column(String(50))
    customer_contact_name: Mapped[str | None] = mapped_column(String(255))

    # ── Supplier / transport ─────────────────────────────────
    supplier_name: Mapped[str | None] = mapped_column(String(255))
    # road | rail | sea | air
    transport_mode: Mapped[str | None] = mapped_column(String(20))

    warehouse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id"), index=True
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def delivery_customer(self) -> dict | None:
        if not self.delivery_customer_id:
            return None
        return {"kind": self.delivery_customer_kind, "id": self.delivery_customer_id}


class InboundProductLine(TenantBase):
    __tablename__ = "inbound_product_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    inbound_inventory_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inbound_inventory.id"), nullable=False, index=True
    )
    sku_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("skus.id"), index=True
    )
    sku_description: Mapped[str | None] = mapped_column(String(255))
    batch_number: Mapped[str | None] = mapped_column(String(100), index=True)

    # ── Quantities ───────────────────────────────────────────
    lpn_qty: Mapped[int | None] = mapped_column(Integer)
    expected_qty: Mapped[int | None] = mapped_column(Integer)
    received_qty: Mapped[int | None] = mapped_column(Integer)
    expected_weight: Mapped[float | None] = mapped_column(Float)
    received_weight: Mapped[float | None] = mapped_column(Float)

    # ── Derived from SKU ─────────────────────────────────────
    sqm_per_su: Mapped[float | None] = mapped_column(Float)
    pallet_spaces: Mapped[float | None] = mapped_column(Float)
    weight_per_hu: Mapped[float | None] = mapped_column(Float)
    expected_cubic_per_hu: Mapped[float | None] = mapped_column(Float)
    received_cubic_per_hu: Mapped[float | None] = mapped_column(Float)

    expiry_date: Mapped[date | None] = mapped_column(Date)
    attribute1: Mapped[str | None] = mapped_column(String(100))
    attribute2: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
