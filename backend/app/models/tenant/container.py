"""Container bookings, the containers on them, and their stock allocations.

A ContainerBooking (import or export) owns ContainerDetail rows, one per
physical container. Each container owns ContainerStockAllocation rows whose
AllocationProductLine children record expected / received / allocated /
picked quantities per SKU.

Statuses cascade bottom-up (see app.services.status_aggregator):
  product lines → container status → booking status

Import booking:  draft → confirmed → in_progress → expecting →
                 partially_received → received → partially_put_away →
                 put_away → completed      (cancelled from any non-final)
Export booking:  draft → confirmed → in_progress → allocated →
                 partially_picked → picked → ready_to_dispatch →
                 dispatched → completed    (cancelled from any non-final)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import TenantBase

IMPORT = "import"
EXPORT = "export"

IMPORT_CONTAINER_STATUSES = ("expecting", "received", "put_away")
EXPORT_CONTAINER_STATUSES = ("allocated", "picked_up", "dispatched")

IMPORT_STAGES = ("expected", "received", "put_away")
EXPORT_STAGES = ("allocated", "picked", "dispatched")

IMPORT_BOOKING_STATUSES = (
    "draft", "confirmed", "in_progress", "expecting", "partially_received",
    "received", "partially_put_away", "put_away", "completed", "cancelled",
)
EXPORT_BOOKING_STATUSES = (
    "draft", "confirmed", "in_progress", "allocated", "partially_picked",
    "picked", "ready_to_dispatch", "dispatched", "completed", "cancelled",
)


class ContainerBooking(TenantBase):
    __tablename__ = "container_bookings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "booking_code", name="uq_bookings_tenant_code"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    # import | export
    booking_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    booking_code: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(30), default="draft", index=True)

    # ── Basic info ───────────────────────────────────────────
    customer_reference: Mapped[str | None] = mapped_column(String(100))
    booking_reference: Mapped[str | None] = mapped_column(String(100))

    # ── Charge to (tagged ref + snapshot) ────────────────────
    charge_to_kind: Mapped[str | None] = mapped_column(String(30))
    charge_to_id: Mapped[str | None] = mapped_column(String(36))
    charge_to_name: Mapped[str | None] = mapped_column(String(255))
    charge_to_contact_name: Mapped[str | None] = mapped_column(String(255))
    charge_to_contact_number: Mapped[str | None] = mapped_column(String(30))

    # Import bookings deliver to a consignee, exports collect from a consignor
    consignee_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id")
    )
    consignor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id")
    )

    # ── Vessel ───────────────────────────────────────────────
    vessel_name: Mapped[str | None] = mapped_column(String(255))
    voyage_number: Mapped[str | None] = mapped_column(String(50))
    eta: Mapped[datetime | None] = mapped_column(DateTime)
    etd: Mapped[datetime | None] = mapped_column(DateTime)
    availability: Mapped[datetime | None] = mapped_column(DateTime)
    storage_start: Mapped[date | None] = mapped_column(Date)
    first_free_import_date: Mapped[date | None] = mapped_column(Date)
    receival_start: Mapped[datetime | None] = mapped_column(DateTime)
    cutoff: Mapped[datetime | None] = mapped_column(DateTime)

    # ── From / To ────────────────────────────────────────────
    from_name: Mapped[str | None] = mapped_column(String(255))
    from_address: Mapped[str | None] = mapped_column(String(255))
    from_city: Mapped[str | None] = mapped_column(String(100))
    from_state: Mapped[str | None] = mapped_column(String(50))
    from_postcode: Mapped[str | None] = mapped_column(String(20))
    to_name: Mapped[str | None] = mapped_column(String(255))
    to_address: Mapped[str | None] = mapped_column(String(255))
    to_city: Mapped[str | None] = mapped_column(String(100))
    to_state: Mapped[str | None] = mapped_column(String(50))
    to_postcode: Mapped[str | None] = mapped_column(String(20))

    # ── Containers & routing ─────────────────────────────────
    # ["20GP", "40HC"]
    container_sizes: Mapped[list | None] = mapped_column(JSON)
    # {"20GP": 2, "40HC": 1}
    container_quantities: Mapped[dict | None] = mapped_column(JSON)
    # {"pickup": "...", "via": [...], "dropoff": "..."}
    full_routing: Mapped[dict | None] = mapped_column(JSON)
    # {"shipping_line": "...", "pickup": "...", "dropoff": "..."}
    empty_routing: Mapped[dict | None] = mapped_column(JSON)

    instructions: Mapped[str | None] = mapped_column(Text)
    job_notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def charge_to(self) -> dict | None:
        if not self.charge_to_id:
            return None
        return {"kind": self.charge_to_kind, "id": self.charge_to_id}


class ContainerDetail(TenantBase):
    """One physical container on a booking."""
    __tablename__ = "container_details"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "container_number", name="uq_container_details_tenant_number"
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("container_bookings.id"), nullable=False, index=True
    )
    container_number: Mapped[str] = mapped_column(String(30), nullable=False)
    container_size: Mapped[str | None] = mapped_column(String(20))
    iso_code: Mapped[str | None] = mapped_column(String(10))
    seal_number: Mapped[str | None] = mapped_column(String(50))
    shipping_line: Mapped[str | None] = mapped_column(String(255))
    warehouse_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("warehouses.id")
    )

    # ── Weights ──────────────────────────────────────────────
    gross_weight: Mapped[float | None] = mapped_column(Float)
    tare_weight: Mapped[float | None] = mapped_column(Float)
    cargo_weight: Mapped[float | None] = mapped_column(Float)

    # import: expecting | received | put_away
    # export: allocated | picked_up | dispatched
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class ContainerStockAllocation(TenantBase):
    __tablename__ = "container_stock_allocations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    container_detail_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("container_details.id"), nullable=False, index=True
    )
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("container_bookings.id"), nullable=False, index=True
    )
    # import: expected | received | put_away
    # export: allocated | picked | dispatched
    stage: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    lines = relationship(
        "AllocationProductLine",
        back_populates="allocation",
        lazy="selectin",
        order_by="AllocationProductLine.position",
        cascade="all, delete-orphan",
    )


class AllocationProductLine(TenantBase):
    __tablename__ = "allocation_product_lines"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    allocation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("container_stock_allocations.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    sku_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("skus.id"))
    sku_description: Mapped[str | None] = mapped_column(String(255))
    batch_number: Mapped[str | None] = mapped_column(String(100))

    # ── Quantities ───────────────────────────────────────────
    expected_qty: Mapped[int | None] = mapped_column(Integer)
    received_qty: Mapped[int | None] = mapped_column(Integer)
    allocated_qty: Mapped[int | None] = mapped_column(Integer)
    picked_qty: Mapped[int | None] = mapped_column(Integer)
    expected_weight: Mapped[float | None] = mapped_column(Float)
    received_weight: Mapped[float | None] = mapped_column(Float)

    # ── Derived from SKU ─────────────────────────────────────
    lpn_qty: Mapped[int | None] = mapped_column(Integer)
    sqm_per_su: Mapped[float | None] = mapped_column(Float)
    plt_qty: Mapped[float | None] = mapped_column(Float)
    pallet_spaces: Mapped[float | None] = mapped_column(Float)
    weight_per_hu: Mapped[float | None] = mapped_column(Float)
    expected_cubic_per_hu: Mapped[float | None] = mapped_column(Float)

    location: Mapped[str | None] = mapped_column(String(100))
    expiry_date: Mapped[date | None] = mapped_column(Date)
    attribute1: Mapped[str | None] = mapped_column(String(100))
    attribute2: Mapped[str | None] = mapped_column(String(100))

    # ── Relationships ────────────────────────────────────────
    allocation = relationship("ContainerStockAllocation", back_populates="lines")
